"""Version information for Panther."""

__version__ = "0.2.0"
__version_info__ = (0, 2, 0)

# Release information
__author__ = "Panther Team"
__license__ = "MIT"
__url__ = "https://github.com/panther-tool/panther"
__description__ = "Availability checker for the sources listed in an extension catalog"
