"""
Utility modules for the payment relay
"""
from .config_loader import RelaySettings, load_relay_settings

__all__ = [
    'RelaySettings',
    'load_relay_settings',
]
