import re
from pathlib import Path
from typing import Dict, List, Optional, Pattern, Tuple, Union

import structlog
import yaml

from application.ports.search_engine_catalog_port import SearchEngineCatalogPort
from core_domain.value_objects.search_engine import SearchEngineDefinition

log = structlog.get_logger(__name__)

DEFAULT_DEFINITIONS_FILE = Path(__file__).resolve().parent.parent / "data" / "search_engines.yml"

# "{}" in a host pattern stands for any top level domain (google.{} -> google.de, google.co.uk)
_TLD_PLACEHOLDER = "{}"
_TLD_REGEX = r"[a-z]{2,6}(?:\.[a-z]{2,3})?"


def _normalize_host(host: str) -> str:
    host = host.strip().lower()
    host = re.sub(r'^[a-z][a-z0-9+.-]*://', '', host)
    return host.split('/')[0].split(':')[0]


def _pattern_to_regex(pattern: str) -> Pattern:
    parts = [re.escape(part) for part in pattern.lower().split(_TLD_PLACEHOLDER)]
    return re.compile('^' + _TLD_REGEX.join(parts) + '$')


class YamlSearchEngineCatalog(SearchEngineCatalogPort):
    """
    Search engine reference table loaded from YAML:

        Google:
          - urls: [www.google.com, google.{}]
            params: [q]
            aliases: [google search]

    The first entry of a name holds its main hosts, further entries add hosts.
    """

    def __init__(self, path: Union[str, Path, None] = None, content: Optional[str] = None):
        """`content` (YAML text) takes precedence over `path` when given."""
        self.path = Path(path) if path else DEFAULT_DEFINITIONS_FILE
        self.log = log.bind(catalog="YamlSearchEngineCatalog")
        self._definitions: List[SearchEngineDefinition] = []
        self._by_host: Dict[str, SearchEngineDefinition] = {}
        self._wildcards: List[Tuple[Pattern, SearchEngineDefinition]] = []

        if content is None:
            try:
                content = self.path.read_text(encoding="utf-8")
            except FileNotFoundError:
                self.log.error("Search engine definitions file not found", path=str(self.path))
                raise
        try:
            raw = yaml.safe_load(content) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid search engine definitions: {e}") from e

        self._index(raw)
        self.log.info("Search engine definitions loaded", definitions_count=len(self._definitions))

    def _index(self, raw: Dict):
        if not isinstance(raw, dict):
            raise ValueError("Search engine definitions must be a mapping of name to entries.")

        for name, entries in raw.items():
            if isinstance(entries, dict):
                entries = [entries]
            urls: List[str] = []
            params: List[str] = []
            aliases: List[str] = []
            for entry in entries or []:
                urls.extend(entry.get('urls') or [])
                params.extend(p for p in (entry.get('params') or []) if isinstance(p, str) and p not in params)
                aliases.extend(entry.get('aliases') or [])

            definition = SearchEngineDefinition(
                name=str(name), host_patterns=tuple(urls), aliases=tuple(aliases), params=tuple(params)
            )
            self._definitions.append(definition)

            for url in urls:
                host = _normalize_host(url)
                if _TLD_PLACEHOLDER in host:
                    self._wildcards.append((_pattern_to_regex(host), definition))
                else:
                    self._by_host.setdefault(host, definition)

    def get_definitions(self) -> List[SearchEngineDefinition]:
        return list(self._definitions)

    def get_definition_by_host(self, host: str) -> Optional[SearchEngineDefinition]:
        if not host:
            return None
        host = _normalize_host(host)
        candidates = [host]
        if host.startswith('www.'):
            candidates.append(host[4:])
        else:
            candidates.append('www.' + host)

        for candidate in candidates:
            if candidate in self._by_host:
                return self._by_host[candidate]
        for candidate in candidates:
            for regex, definition in self._wildcards:
                if regex.match(candidate):
                    return definition
        return None
