"""Base collector for all NAKIVO metric collectors."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from functools import wraps
from typing import Any, Callable, Iterator, List, Optional, Sequence, Tuple
import logging
import threading

from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily, Metric

from ..services.nakivo_client import NakivoClient, NakivoError


class ScrapeError(Exception):
    """The appliance answered, but not with the shape a collector can project."""


class MetricKind(Enum):
    """Prometheus value type of a descriptor."""

    GAUGE = "gauge"
    COUNTER = "counter"


def build_fq_name(namespace: str, subsystem: str, name: str) -> str:
    """Join the non-empty name parts with underscores."""
    return "_".join(part for part in (namespace, subsystem, name) if part)


@dataclass(frozen=True)
class MetricDescriptor:
    """
    Static description of one exported metric.

    Attributes:
        name: Fully-qualified metric name
        help: Help text shown in the exposition
        extract: Pure function from a raw scrape response to the metric value
        kind: Prometheus value type
        label_names: Ordered label names; values are supplied per collector
    """

    name: str
    help: str
    extract: Callable[[Any], float]
    kind: MetricKind = MetricKind.GAUGE
    label_names: Tuple[str, ...] = ()

    def family(self) -> Metric:
        """Return an empty metric family for this descriptor."""
        family_class = (
            CounterMetricFamily if self.kind is MetricKind.COUNTER else GaugeMetricFamily
        )
        return family_class(self.name, self.help, labels=list(self.label_names))

    def sample(self, resp: Any, label_values: Sequence[str]) -> Metric:
        """
        Project a raw response into a single-sample metric family.

        Raises:
            ValueError: If the label values do not match the label names
        """
        if len(label_values) != len(self.label_names):
            raise ValueError(
                f"{self.name} expects {len(self.label_names)} label value(s), "
                f"got {len(label_values)}"
            )
        family = self.family()
        family.add_metric(list(label_values), float(self.extract(resp)))
        return family


def safe_scrape(func):
    """
    Decorator that contains scrape failures.

    Any exception raised by the wrapped scrape is logged at warning level
    and turned into a None result, which the caller reports as up=0.
    Backend and shape errors are expected and logged without a traceback.

    Args:
        func: Collector scrape method to wrap

    Returns:
        Wrapped function returning None on failure
    """
    @wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except (NakivoError, ScrapeError) as e:
            self.logger.warning(
                f"Failed to fetch {self.subsystem} stat: {e}",
                extra={"error_type": type(e).__name__}
            )
        except Exception as e:
            self.logger.warning(
                f"Failed to fetch {self.subsystem} stat: {e}",
                exc_info=True,
                extra={"error_type": type(e).__name__}
            )
        return None
    return wrapper


class BaseCollector(ABC):
    """
    Abstract base class for all collectors.

    Subclasses declare their descriptor table in build_metrics() and fetch
    one raw response per scrape in fetch(). The base class owns the
    registry protocol: describe() lists every family the collector can
    emit, collect() counts the scrape, projects the response when the fetch
    succeeded and always reports the up gauge and the scrape counter.
    """

    #: Metric category, e.g. "job" for nakivo_job_* and nakivo_job_stats_*
    subsystem: str = ""

    def __init__(
        self,
        client: NakivoClient,
        logger: logging.Logger,
        namespace: str = "nakivo"
    ):
        """
        Initialize base collector.

        Args:
            client: Authenticated NAKIVO client, shared between collectors
            logger: Logger instance
            namespace: Metric name prefix
        """
        self.client = client
        self.namespace = namespace
        self.logger = logger.getChild(self.__class__.__name__)

        stats = f"{self.subsystem}_stats"
        self.up = MetricDescriptor(
            name=build_fq_name(namespace, stats, "up"),
            help=f"Was the last scrape of the Nakivo {self.subsystem} endpoint successful.",
            extract=lambda up: up,
        )
        self.total_scrapes = MetricDescriptor(
            name=build_fq_name(namespace, stats, "total_scrapes"),
            help=f"Current total Nakivo {self.subsystem} scrapes.",
            extract=lambda count: count,
            kind=MetricKind.COUNTER,
        )

        self._lock = threading.Lock()
        self._total_scrapes = 0

        self.metrics: Tuple[MetricDescriptor, ...] = tuple(self.build_metrics())

    @abstractmethod
    def build_metrics(self) -> List[MetricDescriptor]:
        """
        Declare the data metrics of this collector.

        Called once at construction; the result is reused for every scrape.

        Returns:
            List[MetricDescriptor]: Descriptor table
        """
        pass

    @abstractmethod
    def fetch(self) -> Any:
        """
        Perform the backend call and return the raw response.

        Raises:
            NakivoError: If the backend call fails
            ScrapeError: If the payload cannot be projected
        """
        pass

    def label_values(self) -> List[str]:
        """Label values attached to every data metric."""
        return []

    def describe(self) -> Iterator[Metric]:
        """Yield an empty family for every metric collect() can emit."""
        for descriptor in self.metrics:
            yield descriptor.family()
        yield self.up.family()
        yield self.total_scrapes.family()

    def collect(self) -> Iterator[Metric]:
        """Scrape the appliance once and yield the resulting families."""
        with self._lock:
            self._total_scrapes += 1
            total_scrapes = self._total_scrapes

        families = self._scrape()
        up = 0.0 if families is None else 1.0

        if families is not None:
            yield from families
        yield self.up.sample(up, [])
        yield self.total_scrapes.sample(total_scrapes, [])

    @safe_scrape
    def _scrape(self) -> Optional[List[Metric]]:
        resp = self.fetch()
        label_values = self.label_values()
        return [descriptor.sample(resp, label_values) for descriptor in self.metrics]
