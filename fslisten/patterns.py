# fslisten/patterns.py

"""
Pattern matching and filtering for file system changes
"""
import fnmatch
import re
import logging
from dataclasses import dataclass, field, replace
from pathlib import PurePath, PurePosixPath
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from .interfaces import FILE, ISilencer

logger = logging.getLogger(__name__)

PatternLike = Union[str, re.Pattern]

# Version control and tool directories, relative to a watched directory
DEFAULT_IGNORED_DIRECTORIES = re.compile(r"""^(?:
    \.git
    | \.svn
    | \.hg
    | \.bzr
    | __pycache__
    | \.mypy_cache
    | \.pytest_cache
    | \.tox
    | \.venv
    | node_modules
    | \.idea
    | \.vscode
)(/|$)""", re.VERBOSE)

# Editor and OS scratch files
DEFAULT_IGNORED_EXTENSIONS = re.compile(r"""(?:
    # Kate
    \..*\d+\.new
    | \.kate-swp

    # gedit
    | \.goutputstream-.{6}

    # vim
    | \.sw[px]

    | \.DS_Store
    | \.tmp
    | \.pyc
    | ~
)$""", re.VERBOSE)

DEFAULT_IGNORE_PATTERNS: Tuple[PatternLike, ...] = (
    DEFAULT_IGNORED_DIRECTORIES,
    DEFAULT_IGNORED_EXTENSIONS,
)

REGEX_CHARS = {'^', '$', '(', ')', '|', '+', '\\', '{', '}'}


def is_regex_pattern(pattern: str) -> bool:
    """Heuristic: strings carrying regex metacharacters are regexes, the rest are globs"""
    return any(char in pattern for char in REGEX_CHARS)


@dataclass
class PatternRule:
    """Pattern matching rule"""
    pattern: PatternLike
    case_sensitive: bool = True
    is_regex: bool = field(init=False, default=False)

    def __post_init__(self):
        flags = 0 if self.case_sensitive else re.IGNORECASE

        if isinstance(self.pattern, re.Pattern):
            self.is_regex = True
            self.compiled_pattern = self.pattern
            return

        if is_regex_pattern(self.pattern):
            try:
                self.compiled_pattern = re.compile(self.pattern, flags)
                self.is_regex = True
                return
            except re.error as e:
                logger.error(f"Invalid regex pattern '{self.pattern}': {e}")
                # Fallback to glob match

        self.compiled_pattern = re.compile(fnmatch.translate(self.pattern), flags)

    @property
    def text(self) -> str:
        if isinstance(self.pattern, re.Pattern):
            return self.pattern.pattern
        return self.pattern

    def matches(self, relative_path: str) -> bool:
        """
        Check if a relative path matches the pattern

        Regexes are searched anywhere in the relative path. Globs must
        match the whole relative path or its last component.
        """
        if self.is_regex:
            return bool(self.compiled_pattern.search(relative_path))

        if self.compiled_pattern.match(relative_path):
            return True
        name = relative_path.rsplit('/', 1)[-1]
        return bool(self.compiled_pattern.match(name))


def as_patterns(patterns: Any) -> Tuple[PatternLike, ...]:
    """Normalize None, a single pattern, or nested sequences of patterns into a flat tuple"""
    if patterns is None:
        return ()
    if isinstance(patterns, (str, re.Pattern)):
        return (patterns,)

    flat: List[PatternLike] = []
    for item in patterns:
        flat.extend(as_patterns(item))
    return tuple(flat)


@dataclass(frozen=True)
class FilterRuleSet:
    """
    Immutable ignore/only configuration

    Every mutation returns a new instance; nothing is edited in place.
    """
    ignore: Tuple[PatternLike, ...] = ()
    ignore_override: Optional[Tuple[PatternLike, ...]] = None
    only: Optional[Tuple[PatternLike, ...]] = None

    @classmethod
    def from_options(cls, ignore: Any = None, ignore_override: Any = None,
                     only: Any = None) -> "FilterRuleSet":
        return cls(
            ignore=as_patterns(ignore),
            ignore_override=None if ignore_override is None else as_patterns(ignore_override),
            only=None if only is None else as_patterns(only),
        )

    def with_ignore(self, patterns: Any) -> "FilterRuleSet":
        """Append to the cumulative ignore list (no deduplication)"""
        return replace(self, ignore=self.ignore + as_patterns(patterns))

    def with_ignore_override(self, patterns: Any) -> "FilterRuleSet":
        """Replace the override wholesale; it shadows ignore and the defaults"""
        return replace(self, ignore_override=as_patterns(patterns))

    def with_only(self, patterns: Any) -> "FilterRuleSet":
        """Replace the only list wholesale"""
        return replace(self, only=as_patterns(patterns))

    def effective_ignore(self) -> Tuple[PatternLike, ...]:
        if self.ignore_override is not None:
            return self.ignore_override
        return DEFAULT_IGNORE_PATTERNS + self.ignore


class Silencer(ISilencer):
    """
    Filter paths based on an immutable FilterRuleSet

    A Silencer is never modified after construction. Changing the rules
    means building a new instance and publishing it in place of the old one.
    """

    def __init__(self, rules: Optional[FilterRuleSet] = None,
                 directories: Sequence[Any] = ()):
        """
        Initialize silencer

        Args:
            rules: Ignore/only rule set (defaults only when None)
            directories: Watched directories, used to relativize paths
        """
        self.rules = rules or FilterRuleSet()
        self.directories = tuple(PurePath(d) for d in directories)

        self.ignore_rules = self._compile_rules(self.rules.effective_ignore())
        self.only_rules: Optional[List[PatternRule]] = None
        if self.rules.only is not None:
            self.only_rules = self._compile_rules(self.rules.only)

        # Cache for performance
        self.cache: Dict[Tuple[str, str], bool] = {}
        self.cache_max_size = 10000

        logger.debug(
            f"Silencer initialized with {len(self.ignore_rules)} ignore rules, "
            f"{len(self.only_rules) if self.only_rules is not None else 'no'} only rules"
        )

    def _compile_rules(self, patterns: Iterable[PatternLike]) -> List[PatternRule]:
        return [PatternRule(pattern=pattern) for pattern in patterns]

    def silenced(self, path: str, kind: str = FILE) -> bool:
        key = (str(path), kind)
        if key in self.cache:
            return self.cache[key]

        relative = self.relative_path(path)
        if self.only_rules is not None and kind == FILE:
            result = not any(rule.matches(relative) for rule in self.only_rules)
        else:
            result = self._ignored(relative)

        if result:
            logger.debug(f"Silenced {kind.lower()} {relative}")

        self._update_cache(key, result)
        return result

    def _ignored(self, relative: str) -> bool:
        """Check the ignore rules against the path and each of its parent directories"""
        candidates = [relative]
        candidates.extend(
            str(parent) for parent in PurePosixPath(relative).parents
            if str(parent) not in (".", "/")
        )

        for candidate in candidates:
            if any(rule.matches(candidate) for rule in self.ignore_rules):
                return True
        return False

    def relative_path(self, path: Any) -> str:
        """
        Express a path relative to the closest watched directory

        Paths outside every watched directory are returned unchanged.
        """
        target = PurePath(path)
        candidates = []
        for directory in self.directories:
            try:
                candidates.append(target.relative_to(directory).as_posix())
            except ValueError:
                continue

        if not candidates:
            return target.as_posix()
        return min(candidates, key=len)

    def _update_cache(self, key: Tuple[str, str], result: bool):
        # Limit cache size
        if len(self.cache) >= self.cache_max_size:
            # Remove oldest entries (first 10%)
            remove_count = self.cache_max_size // 10
            for stale in list(self.cache.keys())[:remove_count]:
                del self.cache[stale]

        self.cache[key] = result

    def get_stats(self) -> Dict[str, Any]:
        """Get filter statistics"""
        return {
            'ignore_rules': [rule.text for rule in self.ignore_rules],
            'only_rules': [rule.text for rule in self.only_rules] if self.only_rules is not None else None,
            'defaults_active': self.rules.ignore_override is None,
            'cache_size': len(self.cache),
        }
