from .step_10_kiosk_user import KioskUserStep
from .step_20_install_packages import InstallPackagesStep
from .step_30_status_page import StatusPageStep
from .step_40_plymouth_theme import PlymouthThemeStep
from .step_50_dhcp_timeout import DhcpTimeoutStep
from .step_60_energy_saving import EnergySavingStep
from .step_70_autologin import AutologinStep
from .step_80_kiosk_launcher import KioskLauncherStep
from .step_90_enable_services import EnableServicesStep
from .step_95_verify_browser import VerifyBrowserStep
from .step_99_complete import CompleteStep

__all__ = [
    "KioskUserStep",
    "InstallPackagesStep",
    "StatusPageStep",
    "PlymouthThemeStep",
    "DhcpTimeoutStep",
    "EnergySavingStep",
    "AutologinStep",
    "KioskLauncherStep",
    "EnableServicesStep",
    "VerifyBrowserStep",
    "CompleteStep",
]
