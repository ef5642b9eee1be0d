"""Source file reading."""

from pathlib import Path
from typing import Union

from .errors import ReadError


class FileReader:
    """Reads module sources as UTF-8 text."""
    
    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding
    
    def read(self, path: Union[str, Path]) -> str:
        """
        Read a source file.
        
        Raises:
            ReadError: If the file is missing, unreadable or not valid text.
        """
        try:
            return Path(path).read_text(encoding=self.encoding)
        except (OSError, UnicodeDecodeError) as e:
            raise ReadError(str(path), e) from e
