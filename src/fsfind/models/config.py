"""
Configuration data models for fsfind.

This module defines the data structures for application configuration,
including ignore patterns, traversal behaviour, matching options, limits,
streaming and logging settings.
"""

import codecs
import logging
import re
from pathlib import PurePosixPath
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError, field_validator


class MatchingConfig(BaseModel):
    """
    Configuration for how terms are matched.

    Attributes:
        case_sensitive: Whether name patterns are case sensitive by default
        encoding: Text encoding used when scanning file contents
    """

    model_config = ConfigDict(extra='forbid')

    case_sensitive: bool = Field(False, description="Case sensitivity for name matching")
    encoding: str = Field("utf-8", min_length=1, description="Encoding for content scanning")

    @field_validator('encoding')
    @classmethod
    def validate_encoding(cls, v: str) -> str:
        """Make sure the codec exists so content scans fail early, not per file."""
        try:
            codecs.lookup(v)
        except LookupError:
            raise ValueError(f"Unknown text encoding: {v}")
        # Files are split into lines before decoding
        if not "a\n".encode(v).endswith(b"a\n"):
            raise ValueError(f"Encoding must be ASCII-compatible: {v}")
        return v

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


class TraversalConfig(BaseModel):
    """
    Configuration for directory traversal.

    Attributes:
        follow_symlinks: Descend into symlinked directories
        max_depth: Deepest level to visit (1 = direct children of the root)
        include_hidden: Visit entries whose name starts with a dot
    """

    model_config = ConfigDict(extra='forbid')

    follow_symlinks: bool = Field(False, description="Descend into symlinked directories")
    max_depth: Optional[int] = Field(None, gt=0, description="Maximum traversal depth")
    include_hidden: bool = Field(True, description="Visit dot-files and dot-directories")

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


class LimitsConfig(BaseModel):
    """
    Configuration for search limits.

    Attributes:
        max_bytes_per_file: Skip larger files in content mode (None = no limit)
        max_results: Stop a batch search after this many matches (None = no limit)
    """

    model_config = ConfigDict(extra='forbid')

    max_bytes_per_file: Optional[int] = Field(None, gt=0, description="Maximum file size to scan (bytes)")
    max_results: Optional[int] = Field(None, gt=0, description="Maximum number of matches")

    def get_max_size_human_readable(self) -> str:
        """Get max file size in human-readable format."""
        if self.max_bytes_per_file is None:
            return "unlimited"
        size = float(self.max_bytes_per_file)
        for unit in ['B', 'KB', 'MB', 'GB']:
            if size < 1024.0:
                return f"{size:.1f} {unit}"
            size /= 1024.0
        return f"{size:.1f} TB"

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


class StreamingConfig(BaseModel):
    """
    Configuration for streaming searches.

    Attributes:
        poll_interval: Seconds a waiting consumer sleeps between worker liveness checks
    """

    model_config = ConfigDict(extra='forbid')

    poll_interval: float = Field(0.1, gt=0.0, le=10.0, description="Consumer liveness check interval")

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


class LoggingConfig(BaseModel):
    """Configuration for log output."""

    model_config = ConfigDict(extra='forbid')

    level: str = Field("WARNING", description="Log level name")

    @field_validator('level', mode='before')
    @classmethod
    def validate_level(cls, v) -> str:
        """Normalize and validate the level name."""
        if not isinstance(v, str):
            raise ValueError(f"Invalid log level: {v}")
        level = v.strip().upper()
        if level not in ('CRITICAL', 'ERROR', 'WARNING', 'INFO', 'DEBUG'):
            raise ValueError(f"Invalid log level: {v}")
        return level

    def get_level(self) -> int:
        return getattr(logging, self.level)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


class IgnoreRule(BaseModel):
    """One compiled gitignore-style rule."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    original: str
    regex: re.Pattern
    is_negation: bool = False
    directory_only: bool = False

    def matches(self, path: str, is_dir: bool = False) -> bool:
        match = self.regex.search(path)
        if match is None:
            return False
        if self.directory_only and not is_dir and match.group('rest') is None:
            # "build/" names a directory; a plain file called build is not ignored,
            # but anything inside a build directory is.
            return False
        return True


def gitignore_to_regex(pattern: str) -> Tuple[str, bool, bool]:
    """
    Convert a gitignore-style pattern to a regex.

    Supports ``*``, ``?``, ``**``, character classes (``[abc]``, ``[!abc]``),
    directory-only patterns (trailing ``/``), negation (leading ``!``) and
    anchoring. As in git, a pattern containing a slash anywhere but at the end
    is relative to the search root; otherwise it matches at any depth.

    Args:
        pattern: Gitignore-style pattern

    Returns:
        Tuple of (regex string, is_negation, directory_only). The regex
        matches the root-relative POSIX path of the entry or of anything
        below it; the ``rest`` group captures the part below the match.

    Raises:
        ValueError: If the pattern is empty after stripping markers
    """
    is_negation = pattern.startswith('!')
    if is_negation:
        pattern = pattern[1:]

    directory_only = pattern.endswith('/')
    pattern = pattern.rstrip('/')

    anchored = '/' in pattern
    pattern = pattern.lstrip('/')
    if pattern.startswith('**/'):
        anchored = False
        pattern = pattern[3:]

    if not pattern:
        raise ValueError("Ignore pattern is empty")

    body = _translate_glob(pattern)
    prefix = '^' if anchored else '(?:^|/)'
    return f"{prefix}{body}(?P<rest>/.*)?$", is_negation, directory_only


def _translate_glob(pattern: str) -> str:
    """Translate glob syntax to regex where ``*`` and ``?`` never cross ``/``."""
    out = []
    i = 0
    n = len(pattern)
    while i < n:
        char = pattern[i]
        if pattern.startswith('**/', i):
            out.append('(?:.*/)?')
            i += 3
        elif pattern.startswith('**', i):
            out.append('.*')
            i += 2
        elif char == '*':
            out.append('[^/]*')
            i += 1
        elif char == '?':
            out.append('[^/]')
            i += 1
        elif char == '[':
            end = pattern.find(']', i + 2 if pattern[i + 1:i + 2] in ('!', '^', ']') else i + 1)
            if end == -1:
                out.append(re.escape(char))
                i += 1
                continue
            inner = pattern[i + 1:end]
            if inner.startswith('!'):
                inner = '^' + inner[1:]
            out.append('[' + inner.replace('\\', '\\\\') + ']')
            i = end + 1
        else:
            out.append(re.escape(char))
            i += 1
    return ''.join(out)


class FinderConfig(BaseModel):
    """
    Main configuration class for fsfind.

    Attributes:
        ignore: Gitignore-style patterns applied to root-relative paths
        matching: Term matching configuration
        traversal: Directory traversal configuration
        limits: Search limits
        streaming: Streaming search configuration
        logging: Log output configuration
    """

    model_config = ConfigDict(extra='forbid')

    ignore: List[str] = Field(default_factory=list, description="Ignore patterns (gitignore-style)")
    matching: MatchingConfig = Field(default_factory=MatchingConfig, description="Matching configuration")
    traversal: TraversalConfig = Field(default_factory=TraversalConfig, description="Traversal configuration")
    limits: LimitsConfig = Field(default_factory=LimitsConfig, description="Search limits")
    streaming: StreamingConfig = Field(default_factory=StreamingConfig, description="Streaming configuration")
    logging: LoggingConfig = Field(default_factory=LoggingConfig, description="Logging configuration")

    _ignore_rules: List[IgnoreRule] = PrivateAttr(default_factory=list)

    @field_validator('ignore', mode='before')
    @classmethod
    def validate_ignore(cls, v) -> List[str]:
        """Drop blank lines and comments, as a .gitignore file would."""
        if v is None:
            return []
        if isinstance(v, str):
            v = v.splitlines()
        patterns = []
        for pattern in v:
            if not isinstance(pattern, str):
                raise ValueError(f"Ignore pattern must be a string: {pattern!r}")
            pattern = pattern.strip()
            if not pattern or pattern.startswith('#'):
                continue
            patterns.append(pattern)
        return patterns

    def model_post_init(self, __context) -> None:
        """Compile ignore patterns once."""
        self._compile_ignore_patterns()

    def _compile_ignore_patterns(self) -> None:
        rules = []
        for pattern in self.ignore:
            try:
                regex, is_negation, directory_only = gitignore_to_regex(pattern)
                rules.append(IgnoreRule(
                    original=pattern,
                    regex=re.compile(regex),
                    is_negation=is_negation,
                    directory_only=directory_only,
                ))
            except (re.error, ValueError) as e:
                raise ValueError(f"Invalid ignore pattern '{pattern}': {e}")
        self._ignore_rules = rules

    def has_ignore_rules(self) -> bool:
        return bool(self._ignore_rules)

    def should_ignore(self, path: str, is_dir: bool = False) -> bool:
        """
        Check if a root-relative path should be ignored.

        Rules are evaluated in order; the last matching rule wins, so a later
        negation pattern re-includes a path an earlier pattern excluded.

        Args:
            path: Path relative to the search root
            is_dir: Whether the path names a directory

        Returns:
            True if the path should be ignored
        """
        if not self._ignore_rules:
            return False

        raw_path = str(path).replace('\\', '/')
        if raw_path.endswith('/'):
            is_dir = True
        normalized_path = PurePosixPath(raw_path).as_posix().lstrip('/')

        ignored = False
        for rule in self._ignore_rules:
            if rule.matches(normalized_path, is_dir=is_dir):
                ignored = not rule.is_negation
        return ignored

    def validate_configuration(self) -> List[str]:
        """Validate the complete configuration and return any warnings."""
        warnings = []

        if self.traversal.follow_symlinks and self.traversal.max_depth is None:
            warnings.append("follow_symlinks is enabled without max_depth; large link farms may be slow to walk")

        if self.limits.max_bytes_per_file is not None and self.limits.max_bytes_per_file < 1024:
            warnings.append(
                f"max_bytes_per_file is very small ({self.limits.get_max_size_human_readable()}); "
                "most files will be skipped in content mode"
            )

        negations_only = self.ignore and all(p.startswith('!') for p in self.ignore)
        if negations_only:
            warnings.append("Ignore list contains only negation patterns, which have no effect")

        return warnings

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            'ignore': list(self.ignore),
            'matching': self.matching.to_dict(),
            'traversal': self.traversal.to_dict(),
            'limits': self.limits.to_dict(),
            'streaming': self.streaming.to_dict(),
            'logging': self.logging.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FinderConfig':
        """Create configuration from dictionary."""
        return cls.model_validate(data)

    def __str__(self) -> str:
        """String representation of configuration."""
        return (
            f"FinderConfig(ignore={len(self.ignore)} patterns, "
            f"case_sensitive={self.matching.case_sensitive}, "
            f"max_depth={self.traversal.max_depth}, "
            f"follow_symlinks={self.traversal.follow_symlinks})"
        )


def validate_config_dict(config_data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate a configuration dictionary using Pydantic.

    Args:
        config_data: Dictionary containing configuration data

    Returns:
        Validated and normalized configuration dictionary

    Raises:
        ValueError: If configuration is invalid
    """
    try:
        return FinderConfig.model_validate(config_data).to_dict()
    except ValidationError as e:
        raise ValueError(_format_validation_error(e)) from e


def _format_validation_error(error: ValidationError) -> str:
    messages = []
    for item in error.errors():
        location = '.'.join(str(part) for part in item['loc']) or 'config'
        messages.append(f"{location}: {item['msg']}")
    return '; '.join(messages)
