"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

utils/convert_utils.py
Size conversions shared by the CLI and the configuration objects.
"""

# Binary multiples, both full (KB) and short (K) forms
_SIZE_UNITS = {
    'PB': 1024 ** 5, 'P': 1024 ** 5,
    'TB': 1024 ** 4, 'T': 1024 ** 4,
    'GB': 1024 ** 3, 'G': 1024 ** 3,
    'MB': 1024 ** 2, 'M': 1024 ** 2,
    'KB': 1024, 'K': 1024,
    'B': 1,
}

# Longest suffix first so that 'KB' is not read as 'K' + 'B'
_SUFFIXES = sorted(_SIZE_UNITS, key=len, reverse=True)


class ConvertUtils:
    @staticmethod
    def bytes_to_human(size_bytes: int) -> str:
        """
        Convert bytes to human-readable string (e.g., 1.50KB, 3.20MB).
        Plain bytes are shown without decimals.
        """
        if size_bytes < 1024:
            return f"{max(size_bytes, 0)}B"

        value = float(size_bytes)
        for unit in ["KB", "MB", "GB", "TB", "PB"]:
            value /= 1024
            if value < 1024:
                return f"{value:.2f}{unit}"
        return f"{value / 1024:.2f}EB"

    @staticmethod
    def human_to_bytes(size_str: str) -> int:
        """
        Convert human-readable size string to bytes.
        Supports formats: '1.5GB', '2048KB', '1000', '64K', '1M', '1G', etc.
        Raises ValueError for negative sizes or invalid formats.
        """
        normalized = size_str.strip().upper()
        if not normalized:
            raise ValueError("Size cannot be empty")

        multiplier = 1
        number = normalized
        for suffix in _SUFFIXES:
            if normalized.endswith(suffix):
                multiplier = _SIZE_UNITS[suffix]
                number = normalized[:-len(suffix)].strip()
                break

        try:
            value = float(number) if multiplier > 1 or "." in number else int(number)
        except ValueError:
            raise ValueError(
                f"Invalid size format: '{size_str}'. "
                f"Supported formats: 1.5GB, 2048KB, 1000, 64K, 1M, etc."
            )

        if value < 0:
            raise ValueError(f"Negative size not allowed: '{size_str}'")
        return int(value * multiplier)

    @staticmethod
    def is_valid_size_format(size_str: str) -> bool:
        try:
            ConvertUtils.human_to_bytes(size_str)
            return True
        except ValueError:
            return False
