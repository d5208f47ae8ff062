"""Exception classes for the addon catalog"""


class AddonError(Exception):
    """Base exception for all addon-related errors"""
    pass


class VersionParseError(AddonError, ValueError):
    """Raised when a version or version range cannot be parsed"""
    pass


class RecordStoreError(AddonError):
    """Raised when the installed-record store cannot be read or written"""
    pass


class HandlerError(AddonError):
    """Raised by an addon handler when install or uninstall fails"""
    pass


class CatalogFetchError(AddonError):
    """Raised when the remote catalog cannot be fetched or parsed"""
    pass


class DownloadError(HandlerError):
    """Raised when an addon archive download fails"""
    pass
