"""Import-Bot - resilient browser automation for bulk CSV imports."""

__version__ = "1.0.0"
