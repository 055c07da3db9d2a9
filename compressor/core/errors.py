"""Error kinds raised while compressing a batch.

Everything below `ValidationError` is per-file and, under the default
policy, fatal to the whole batch.
"""


class ImageCompressionError(Exception):
    """Base class for every error the compressor raises on purpose."""


class ValidationError(ImageCompressionError):
    """The request envelope is missing, empty or malformed."""


class DecodeError(ImageCompressionError):
    """The payload is not decodable base64 or not a recognizable image."""


class UnsupportedFormatError(ImageCompressionError):
    """The requested output format is not one we can encode."""


class EncodeError(ImageCompressionError):
    """Resizing or compressing the image failed."""


class StorageError(ImageCompressionError):
    """The object store rejected or failed the upload."""
