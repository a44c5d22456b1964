"""
Upload lifecycle.

A ``TelemetryStore`` holds the "original" dataset installed by the most
recent successful upload. Each upload runs as a ``LoadJob``; beginning a new
job supersedes any job still in flight, and a superseded job's result is
discarded instead of installed. The dataset reference is only swapped after
a parse has fully completed.
"""

import logging

from collections.abc import Generator
from enum import Enum

from presswatch.constants import DataShape
from presswatch.filtering import filter_dataset
from presswatch.ingest import ingest_steps
from presswatch.models.filters import FilterCriteria
from presswatch.models.records import LongDataset, WideDataset
from presswatch.parsers.base import IngestError
from presswatch.parsers.csv_reader import CsvSource, ProgressCallback

logger = logging.getLogger(__name__)


class LoadState(str, Enum):
    AWAITING_UPLOAD = "awaiting_upload"
    LOADING = "loading"
    READY = "ready"


class LoadJob:
    """
    One upload attempt.

    Drive it with ``steps()`` (a generator the caller resumes between
    batches) or ``run()`` (parses to completion).
    """

    def __init__(
        self,
        store: "TelemetryStore",
        generation: int,
        source: CsvSource,
        shape: DataShape | None = None,
    ):
        self._store = store
        self.generation = generation
        self.source = source
        self.shape = shape
        self.installed = False

    @property
    def is_current(self) -> bool:
        return self._store.generation == self.generation

    def steps(self) -> Generator[float, None, WideDataset | LongDataset | None]:
        """
        Parse incrementally, yielding progress percentages.

        Returns:
            The installed dataset, or None if the job was superseded

        Raises:
            IngestError: If ingestion fails; the previous dataset is kept
        """
        pipeline = ingest_steps(self.source, shape=self.shape)
        try:
            while True:
                if not self.is_current:
                    pipeline.close()
                    logger.info(f"Upload {self.generation} superseded, discarding")
                    return None
                try:
                    progress = next(pipeline)
                except StopIteration as done:
                    dataset = done.value
                    break
                yield progress
        except IngestError as e:
            self._store._fail(self, e)
            raise
        except Exception:
            self._store._abort(self)
            raise

        if not self._store._install(self, dataset):
            return None
        self.installed = True
        return dataset

    def run(
        self, on_progress: ProgressCallback | None = None
    ) -> WideDataset | LongDataset | None:
        """Parse to completion; returns None if superseded meanwhile."""
        steps = self.steps()
        while True:
            try:
                progress = next(steps)
            except StopIteration as done:
                return done.value
            if on_progress:
                on_progress(progress)


class TelemetryStore:
    """Holds the uploaded dataset and derives filtered views of it."""

    def __init__(self) -> None:
        self.dataset: WideDataset | LongDataset | None = None
        self.last_error: IngestError | None = None
        self.generation = 0
        self._loading = False

    @property
    def state(self) -> LoadState:
        if self._loading:
            return LoadState.LOADING
        if self.dataset is None:
            return LoadState.AWAITING_UPLOAD
        return LoadState.READY

    def begin_load(self, source: CsvSource, shape: DataShape | None = None) -> LoadJob:
        """Start a new upload, superseding any upload still in progress."""
        self.generation += 1
        self._loading = True
        logger.debug(f"Starting upload {self.generation}")
        return LoadJob(self, self.generation, source, shape)

    def load(
        self,
        source: CsvSource,
        shape: DataShape | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> WideDataset | LongDataset:
        """
        Upload and install a dataset in one call.

        Raises:
            IngestError: If ingestion fails
        """
        job = self.begin_load(source, shape)
        dataset = job.run(on_progress)
        assert dataset is not None
        return dataset

    def filtered(self, criteria: FilterCriteria) -> WideDataset | LongDataset | None:
        """Apply a selection to the installed dataset."""
        if self.dataset is None:
            return None
        return filter_dataset(self.dataset, criteria)

    def clear(self) -> None:
        self.generation += 1
        self.dataset = None
        self.last_error = None
        self._loading = False

    def _install(self, job: LoadJob, dataset: WideDataset | LongDataset) -> bool:
        if not job.is_current:
            logger.info(f"Upload {job.generation} finished after being superseded")
            return False
        self.dataset = dataset
        self.last_error = None
        self._loading = False
        logger.info(f"Installed {dataset.shape} dataset from upload {job.generation}")
        return True

    def _fail(self, job: LoadJob, error: IngestError) -> None:
        if not job.is_current:
            return
        self.last_error = error
        self._loading = False
        logger.warning(f"Upload {job.generation} failed: {error}")

    def _abort(self, job: LoadJob) -> None:
        if not job.is_current:
            return
        self._loading = False
        logger.exception(f"Upload {job.generation} aborted by an unexpected error")
