from ui.pages.home_page import HomePage
from ui.pages.settings_page import SettingsPage

__all__ = ["HomePage", "SettingsPage"]
