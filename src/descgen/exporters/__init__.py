"""Writers for the files handed to other build steps."""

from .properties import PropertiesWriter, read_properties

__all__ = ["PropertiesWriter", "read_properties"]
