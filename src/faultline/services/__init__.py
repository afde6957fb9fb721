"""Service layer — settings synchronization and change notification.

Services may import from domain and infrastructure layers.
They must never import from plugins, commands, or output.
"""

from faultline.services.notifier import ChangeNotifier
from faultline.services.result import ServiceError, ServiceResult
from faultline.services.settings_manager import SettingsManager

__all__ = ["ChangeNotifier", "ServiceError", "ServiceResult", "SettingsManager"]
