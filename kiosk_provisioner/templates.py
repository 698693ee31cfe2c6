"""Generated artifacts.

Each template turns a ConfigSnapshot into file content, deterministically, so
the reconciler can compare it byte-for-byte with what is on disk.
"""

from __future__ import annotations

import base64
import shlex
from typing import Dict

from .config_store import ConfigSnapshot
from .lib.env import PATHS

# 1x1 PNG used when no logo is configured and ImageMagick is missing.
PLACEHOLDER_LOGO_PNG = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)

DIRECTORY_INDEX = "DirectoryIndex index.php index.html index.cgi index.pl index.xhtml index.htm"

XSET_DISABLE_LINES = ("xset -dpms", "xset s off", "xset s noblank")

# Commands that start a session for a given window manager name.
WM_SESSIONS: Dict[str, str] = {"openbox": "openbox-session"}


class Template:
    def render(self, config: ConfigSnapshot) -> str:
        raise NotImplementedError


class StatusPage(Template):
    def path(self, config: ConfigSnapshot) -> str:
        return f"{config.apache_docroot.rstrip('/')}/index.php"

    def render(self, config: ConfigSnapshot) -> str:
        return """<?php
function h($s){return htmlspecialchars($s, ENT_QUOTES, 'UTF-8');}
$hostname = trim(shell_exec('hostname'));
$ips = trim(shell_exec("hostname -I 2>/dev/null || ip -o -4 addr show | awk '{print \\$4}'"));
$kernel = php_uname();
$cpu = trim(shell_exec('lscpu 2>/dev/null | sed -n "1,20p"'));
$mem = trim(shell_exec('free -h 2>/dev/null'));
$disk = trim(shell_exec('df -h / 2>/dev/null'));
?>
<!doctype html>
<html>
<head>
  <meta charset="utf-8">
  <title>Device Status</title>
  <style>
    body { font-family: Arial, sans-serif; margin: 2rem; }
    pre { background: #f7f7f7; padding: 1rem; border-radius: 6px; overflow:auto }
    .kv { margin: 0.4rem 0; }
    .kv span { display:inline-block; width: 180px; font-weight:bold; }
  </style>
</head>
<body>
  <h1>Device Status</h1>
  <div class="kv"><span>Hostname</span> <?=h($hostname)?></div>
  <div class="kv"><span>IP Addresses</span> <?=h($ips)?></div>
  <div class="kv"><span>Kernel</span> <?=h($kernel)?></div>
  <h2>CPU</h2>
  <pre><?=h($cpu)?></pre>
  <h2>Memory</h2>
  <pre><?=h($mem)?></pre>
  <h2>Disk</h2>
  <pre><?=h($disk)?></pre>
</body>
</html>
"""


def plymouth_theme_dir(config: ConfigSnapshot) -> str:
    return f"{PATHS.plymouth_themes}/{config.plymouth_theme}"


class PlymouthThemeFile(Template):
    def path(self, config: ConfigSnapshot) -> str:
        return f"{plymouth_theme_dir(config)}/{config.plymouth_theme}.plymouth"

    def render(self, config: ConfigSnapshot) -> str:
        theme_dir = plymouth_theme_dir(config)
        return (
            "[Plymouth Theme]\n"
            f"Name={config.plymouth_theme}\n"
            "Description=Simple logo with text messages\n"
            "ModuleName=script\n"
            "\n"
            "[script]\n"
            f"ImageDir={theme_dir}\n"
            f"ScriptFile={PlymouthScript().path(config)}\n"
        )


class PlymouthScript(Template):
    def path(self, config: ConfigSnapshot) -> str:
        return f"{plymouth_theme_dir(config)}/{config.plymouth_theme}.script"

    def render(self, config: ConfigSnapshot) -> str:
        return """// Simple Plymouth script that shows a logo centered, with messages underneath

Window.SetBackgroundTopColor (0.0, 0.0, 0.0);       // black
Window.SetBackgroundBottomColor (0.0, 0.0, 0.0);    // black

logo_image = Image ("logo.png");
logo_sprite = Sprite (logo_image);
logo_sprite.SetX (Window.GetWidth ()/2 - logo_image.GetWidth ()/2);
logo_sprite.SetY (Window.GetHeight ()/2 - logo_image.GetHeight ()/2 - 40);

txt = Text ("Starting...");
txt.SetX (Window.GetWidth ()/2 - txt.GetWidth ()/2);
txt.SetY (Window.GetHeight ()/2 + logo_image.GetHeight ()/2);

detail = Text ("");
detail.SetX (10);
detail.SetY (Window.GetHeight () - 30);

timeout = 0; // Required variable

fun message_callback (message)
{
  txt.SetText (message);
}

Plymouth.SetUpdateStatusFunction (message_callback);
"""


class DhclientTimeout(Template):
    def render(self, config: ConfigSnapshot) -> str:
        return f"timeout {config.dhcp_timeout_seconds};"


class GettyAutologinOverride(Template):
    def path(self, config: ConfigSnapshot) -> str:
        return f"{PATHS.systemd_units}/getty@{config.tty_autologin}.service.d/override.conf"

    def render(self, config: ConfigSnapshot) -> str:
        return (
            "[Service]\n"
            "ExecStart=\n"
            f"ExecStart=-/sbin/agetty --autologin {config.kiosk_user} --noclear %I $TERM\n"
            "Type=idle\n"
        )


class KioskSessionSnippet(Template):
    """Starts X when the kiosk user logs in on the autologin tty."""

    def path(self, config: ConfigSnapshot) -> str:
        return f"{config.home_dir}/.kiosk-session"

    def source_line(self, config: ConfigSnapshot) -> str:
        return '[ -f "$HOME/.kiosk-session" ] && . "$HOME/.kiosk-session"'

    def render(self, config: ConfigSnapshot) -> str:
        return (
            "# Managed by kiosk-setup\n"
            f'if [ -z "$DISPLAY" ] && [ "$(tty)" = "/dev/{config.tty_autologin}" ]; then\n'
            "  export XDG_SESSION_TYPE=x11\n"
            "  startx\n"
            "fi\n"
        )


class KioskLauncher(Template):
    """Runs the browser in kiosk mode on every connected monitor.

    The resolved BOOT_URL is written into the script; the config file is not
    sourced at runtime.
    """

    def path(self, config: ConfigSnapshot) -> str:
        return PATHS.launcher

    def render(self, config: ConfigSnapshot) -> str:
        wm = config.window_manager
        wm_session = WM_SESSIONS.get(wm, wm)
        return f"""#!/usr/bin/env bash
# Generated by kiosk-setup from {config.source_path}.
# Re-run kiosk-setup after editing that file.
set -euo pipefail

BOOT_URL={shlex.quote(config.boot_url)}

# Ensure window manager
if ! pgrep -x {shlex.quote(wm)} >/dev/null 2>&1; then
  ({shlex.quote(wm_session)} >/tmp/{wm}.log 2>&1 &)
  sleep 1
fi

# Detect monitors
if command -v xrandr >/dev/null 2>&1; then
  mapfile -t monitors < <(xrandr --listmonitors 2>/dev/null | awk 'NR>1 {{print $4}}')
  if [[ ${{#monitors[@]}} -eq 0 ]]; then
    mapfile -t monitors < <(xrandr --query | awk '/ connected/{{print $1}}')
  fi
else
  monitors=("default")
fi

# Chromium binary
CHROME_BIN="$(command -v chromium || true)"
if [[ -z "$CHROME_BIN" ]]; then
  CHROME_BIN="$(command -v chromium-browser || true)"
fi
if [[ -z "$CHROME_BIN" ]]; then
  CHROME_BIN="/snap/bin/chromium"
fi

COMMON_FLAGS=(
  --no-first-run
  --no-default-browser-check
  --disable-translate
  --incognito
  --kiosk
  --start-fullscreen
  --disable-session-crashed-bubble
  --disable-features=TranslateUI
  --disable-infobars
  --overscroll-history-navigation=0
)

# Launch one window per monitor
INDEX=0
for mon in "${{monitors[@]}}"; do
  if command -v xrandr >/dev/null 2>&1; then
    geom=$(xrandr | awk -v m="$mon" '$0~m" connected"{{print $3}}' | sed 's/+.*//')
    width=${{geom%x*}}
    height=${{geom#*x}}
    xpos=$(xrandr | awk -v m="$mon" '$0~m" connected"{{print $3}}' | awk -F'+' '{{print $2}}')
    ypos=$(xrandr | awk -v m="$mon" '$0~m" connected"{{print $3}}' | awk -F'+' '{{print $3}}')
    ("$CHROME_BIN" "${{COMMON_FLAGS[@]}}" --window-position="${{xpos:-0}},${{ypos:-0}}" --window-size="${{width:-1920}},${{height:-1080}}" "$BOOT_URL" >/tmp/chromium-${{INDEX}}.log 2>&1 &)
  else
    ("$CHROME_BIN" "${{COMMON_FLAGS[@]}}" "$BOOT_URL" >/tmp/chromium-${{INDEX}}.log 2>&1 &)
  fi
  INDEX=$((INDEX+1))
  sleep 0.5
done

# Keep session alive
wait
"""


class Xinitrc(Template):
    def path(self, config: ConfigSnapshot) -> str:
        return f"{config.home_dir}/.xinitrc"

    def render(self, config: ConfigSnapshot) -> str:
        lines = [
            "#!/usr/bin/env bash",
            "set -e",
            "export DISPLAY=:0",
            f'export XAUTHORITY="{config.home_dir}/.Xauthority"',
            "",
        ]
        if config.disable_energy_saving:
            lines += ["# Disable DPMS/screensaver", *XSET_DISABLE_LINES, ""]
        lines += ["# Start window manager and kiosk launcher", PATHS.launcher]
        return "\n".join(lines) + "\n"
