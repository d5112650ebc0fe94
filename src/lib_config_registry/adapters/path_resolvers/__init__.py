"""Instance file naming and directory enumeration."""
