from .schema import AnalyticsConfig, ConfigSchema, MonitorConfig, SliceConfig

__all__ = ["AnalyticsConfig", "ConfigSchema", "MonitorConfig", "SliceConfig"]
