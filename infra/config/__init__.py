from .filesystem_config_provider import DEFAULT_KITTA, FileSystemConfigProvider

__all__ = ["DEFAULT_KITTA", "FileSystemConfigProvider"]
