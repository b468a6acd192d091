# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# EPOCH: 1 - MESSAGE ROUTING
# STATUS: Core - Configuration and defaults
# PURPOSE: Centralized configuration management
# CREATED: 18 OCT 2026
# ============================================================================
"""
Configuration Module

Provides centralized configuration for the gateway and the listener.
"""

from core.config.defaults import (
    BrokerConfig,
    ServiceEndpoints,
    GatewayConfig,
    ListenerConfig,
    Settings,
    get_settings,
    reset_settings,
)

__all__ = [
    "BrokerConfig",
    "ServiceEndpoints",
    "GatewayConfig",
    "ListenerConfig",
    "Settings",
    "get_settings",
    "reset_settings",
]
