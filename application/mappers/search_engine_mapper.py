import re
from typing import Dict, Optional

import structlog

from application.ports.search_engine_catalog_port import SearchEngineCatalogPort
from core_domain.value_objects.search_engine import SearchEngineDefinition

log = structlog.get_logger(__name__)

_NON_ALNUM = re.compile(r'[^a-zA-Z0-9]')


def simplify_source_name(name: str) -> str:
    return _NON_ALNUM.sub('', name)


class SearchEngineMapper:
    """
    Normalizes GA `source` values ("google", "Yahoo!", "search-results"...) to
    the canonical search engine names of the local store.
    """

    def __init__(self, catalog: SearchEngineCatalogPort):
        self.catalog = catalog
        self.log = log.bind(mapper="SearchEngineMapper")
        self._sources_to_search_engines: Dict[str, SearchEngineDefinition] = {}

        for definition in catalog.get_definitions():
            lower_name = definition.name.lower()
            self._sources_to_search_engines[lower_name] = definition
            self._sources_to_search_engines[simplify_source_name(lower_name)] = definition
            for alias in definition.aliases:
                self._sources_to_search_engines.setdefault(alias.lower(), definition)

        if 'ask' in self._sources_to_search_engines:
            self._sources_to_search_engines['search-results'] = self._sources_to_search_engines['ask']

        self.log.debug("Search engine lookup built", keys_count=len(self._sources_to_search_engines))

    def map_source_to_search_engine(self, source: str) -> str:
        lower_source = source.lower()
        definition = self._sources_to_search_engines.get(lower_source)
        if definition is None:
            definition = self._sources_to_search_engines.get(simplify_source_name(lower_source))

        if definition is not None:
            return definition.name

        self.log.warning("Unknown search engine source received from Google Analytics", source=source)
        return source

    def map_referral_medium_to_search_engine(self, medium: str) -> Optional[str]:
        definition = self.catalog.get_definition_by_host(medium)
        if definition is None:
            return None
        return definition.name
