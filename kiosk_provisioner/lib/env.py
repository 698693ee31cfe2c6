from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Paths:
    target_root: str = "/"
    config_default: str = "/etc/kiosk-setup.conf"
    log_default: str = "/var/log/kiosk-setup.log"
    log_fallback_name: str = "kiosk-setup.log"
    launcher: str = "/usr/local/bin/kiosk-launcher.sh"
    apache_dir_conf: str = "/etc/apache2/mods-available/dir.conf"
    dhclient_conf: str = "/etc/dhcp/dhclient.conf"
    kbd_config: str = "/etc/kbd/config"
    plymouth_themes: str = "/usr/share/plymouth/themes"
    systemd_units: str = "/etc/systemd/system"


PATHS = Paths()

# apt/dpkg must never stop to ask a question on a headless machine.
NONINTERACTIVE_ENV = {
    "DEBIAN_FRONTEND": "noninteractive",
    "APT_LISTCHANGES_FRONTEND": "none",
}
