"""End-to-end export: entity graph archive in, zipped search document CSV out."""
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

from geoexport.core.admin_units import AdminUnitsIndex
from geoexport.core.archive import unzip_first_entry, zip_single_entry
from geoexport.core.blob_store import BlobStore
from geoexport.core.config import (
    ADMIN_UNITS_CACHE_MAX_SIZE,
    ADMIN_UNITS_INCLUDE,
    EXCLUDED_COUNTRY_CODE,
    GOS_INCLUDE,
    INPUT_BLOB_NAME,
    LATEST_BLOB_NAME,
    LATEST_BUCKET,
    MAPPING_WORKERS,
    OUTPUT_FILE_PREFIX,
    RETRY_BASE_WAIT,
    RETRY_MAX_ATTEMPTS,
    RETRY_MAX_WAIT,
    RETRY_MULTIPLIER,
    STOP_PLACE_BOOST_CONFIG,
)
from geoexport.core.csv_export import create_csv
from geoexport.core.documents import DocumentMapper
from geoexport.core.enrichment import ParentEnricher
from geoexport.core.hierarchy import build_hierarchies
from geoexport.core.loader import load_entity_graph
from geoexport.core.models import SearchDocument
from geoexport.core.popularity import (
    GroupOfStopPlacesBoost,
    StopPlaceBoostConfiguration,
    build_popularity_cache,
)
from geoexport.utils.error_tracking import capture_exception
from geoexport.utils.logging import log_error, log_structured
from geoexport.utils.retry import RetryConfig, call_with_retry
from geoexport.utils.timing import Timer


@dataclass
class ExportSettings:
    """Knobs for one pipeline instance. Defaults come from the environment."""
    input_blob_name: str = INPUT_BLOB_NAME
    output_file_prefix: str = OUTPUT_FILE_PREFIX
    latest_bucket: str = LATEST_BUCKET
    latest_blob_name: str = LATEST_BLOB_NAME
    boost_config: str = STOP_PLACE_BOOST_CONFIG
    include_groups: bool = GOS_INCLUDE
    include_admin_units: bool = ADMIN_UNITS_INCLUDE
    cache_max_size: int = ADMIN_UNITS_CACHE_MAX_SIZE
    excluded_country_code: Optional[str] = EXCLUDED_COUNTRY_CODE
    workers: int = MAPPING_WORKERS
    retry: RetryConfig = field(default_factory=lambda: RetryConfig(
        max_attempts=RETRY_MAX_ATTEMPTS,
        base_wait=RETRY_BASE_WAIT,
        multiplier=RETRY_MULTIPLIER,
        max_wait=RETRY_MAX_WAIT,
    ))


class ExportPipeline:
    """
    Runs the export against an input and an output blob store.

    Only one run may be in flight per instance; ``run`` returns None
    instead of starting a second one. Nothing is uploaded unless every
    stage before the upload succeeded.
    """

    def __init__(
        self,
        input_store: BlobStore,
        output_store: BlobStore,
        settings: Optional[ExportSettings] = None,
        mapper: Optional[DocumentMapper] = None,
        sleep: Optional[Callable[[float], None]] = None,
        clock: Callable[[], datetime] = datetime.now
    ):
        self.input_store = input_store
        self.output_store = output_store
        self.settings = settings or ExportSettings()
        self.boost_configuration = StopPlaceBoostConfiguration.from_json(self.settings.boost_config)
        self.mapper = mapper or DocumentMapper(group_boost=GroupOfStopPlacesBoost())
        self._sleep = sleep
        self._clock = clock
        self._lock = threading.Lock()
        self._ready = True

    @property
    def ready(self) -> bool:
        with self._lock:
            return self._ready

    def run(self) -> Optional[str]:
        """
        Run one export.

        Returns:
            Name of the uploaded blob, or None when a run is already in progress

        Raises:
            ExportError, OSError: the run is aborted and nothing is published
        """
        with self._lock:
            if not self._ready:
                log_structured("warning", "Export already running, request ignored")
                return None
            self._ready = False

        try:
            return self._run()
        except Exception as e:
            log_error(e, {"module": "pipeline", "function": "run"})
            capture_exception(e, {"stage": "export"})
            raise
        finally:
            with self._lock:
                self._ready = True

    def _retry(self, func, *args, operation: str):
        kwargs = {"sleep": self._sleep} if self._sleep is not None else {}
        return call_with_retry(func, *args, config=self.settings.retry, operation=operation, **kwargs)

    def _run(self) -> str:
        settings = self.settings

        with Timer("fetch_input"):
            archive = self._retry(self.input_store.get, settings.input_blob_name, operation="fetch_input")
            graph = load_entity_graph(unzip_first_entry(archive))

        with Timer("build_indexes"):
            with ThreadPoolExecutor(max_workers=2) as executor:
                hierarchy_future = executor.submit(build_hierarchies, graph.stop_places)
                admin_units_future = executor.submit(
                    AdminUnitsIndex.build,
                    graph.admin_units,
                    settings.cache_max_size,
                    settings.excluded_country_code,
                )
                nodes = hierarchy_future.result()
                admin_units = admin_units_future.result()

        with Timer("popularity"):
            popularity_cache = build_popularity_cache(nodes, self.boost_configuration)

        with Timer("map_documents"):
            documents = self.map_documents(nodes, graph, popularity_cache, admin_units)

        with Timer("write_csv"):
            timestamp = self._clock().strftime("%Y%m%d%H%M%S")
            csv_data = create_csv(documents)
            blob_name = f"{settings.output_file_prefix}{timestamp}.zip"
            payload = zip_single_entry(f"{settings.output_file_prefix}{timestamp}.csv", csv_data)

        with Timer("publish"):
            self._retry(self.output_store.put, blob_name, payload, operation="upload_export")
            self._retry(
                self.output_store.copy, blob_name, settings.latest_bucket, settings.latest_blob_name,
                operation="copy_latest"
            )

        log_structured("info", "Export published", blob=blob_name, documents=len(documents))
        return blob_name

    def map_documents(self, nodes, graph, popularity_cache, admin_units: AdminUnitsIndex) -> List[SearchDocument]:
        """
        Map, enrich and filter documents in input order.

        Stop places come first, then groups of stop places, then admin units.
        """
        enricher = ParentEnricher(admin_units)
        settings = self.settings

        def stop_place(node):
            return [enricher.enrich(d) for d in self.mapper.stop_place_documents(node, popularity_cache)]

        def group(gos):
            return [enricher.enrich(d) for d in self.mapper.group_documents(gos, popularity_cache)]

        def admin_unit(unit):
            return [enricher.enrich_admin_unit(d) for d in self.mapper.admin_unit_documents(unit)]

        batches = []
        with ThreadPoolExecutor(max_workers=max(1, settings.workers)) as executor:
            batches.extend(executor.map(stop_place, nodes))
            if settings.include_groups:
                batches.extend(executor.map(group, graph.groups_of_stop_places))
            if settings.include_admin_units:
                batches.extend(executor.map(admin_unit, graph.admin_units))

        documents = [document for batch in batches for document in batch]
        valid = [document for document in documents if document.is_valid()]
        if len(valid) != len(documents):
            log_structured("info", "Dropped documents without center point", dropped=len(documents) - len(valid))
        return valid
