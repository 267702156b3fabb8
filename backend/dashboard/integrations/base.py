"""
Integration plugin contract

Every integration is an IntegrationDefinition whose fetcher knows how to pull
metrics for one account of one external service.
"""
import time
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional


@dataclass
class CredentialField:
    """A credential the user has to provide, e.g. a secret key"""
    key: str
    label: str
    type: str = 'password'
    placeholder: Optional[str] = None
    help_url: Optional[str] = None
    help_text: Optional[str] = None
    required: bool = True

    def to_dict(self) -> dict:
        return {
            'key': self.key,
            'label': self.label,
            'type': self.type,
            'placeholder': self.placeholder,
            'helpUrl': self.help_url,
            'helpText': self.help_text,
            'required': self.required,
        }


@dataclass
class RequiredPermission:
    resource: str
    label: str
    access: str
    reason: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class MetricTypeDefinition:
    key: str
    label: str
    format: str
    description: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SyncStep:
    """A discrete step of a sync, reported for progress display"""
    STATUS_RUNNING = 'running'
    STATUS_SUCCESS = 'success'
    STATUS_ERROR = 'error'
    STATUS_SKIPPED = 'skipped'

    key: str
    label: str
    status: str
    record_count: Optional[int] = None
    duration_ms: Optional[int] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        data = {'key': self.key, 'label': self.label, 'status': self.status}
        if self.record_count is not None:
            data['recordCount'] = self.record_count
        if self.duration_ms is not None:
            data['durationMs'] = self.duration_ms
        if self.error is not None:
            data['error'] = self.error
        return data


@dataclass
class NormalizedMetric:
    """One metric value for one day"""
    metric_type: str
    value: float
    date: str
    currency: Optional[str] = None
    project_id: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        data = {'metricType': self.metric_type, 'value': self.value, 'date': self.date}
        if self.currency:
            data['currency'] = self.currency
        if self.project_id:
            data['projectId'] = self.project_id
        if self.metadata:
            data['metadata'] = dict(self.metadata)
        return data


@dataclass
class SyncResult:
    success: bool
    records_processed: int = 0
    metrics: List[NormalizedMetric] = field(default_factory=list)
    error: Optional[str] = None
    steps: List[SyncStep] = field(default_factory=list)


@dataclass
class AccountConfig:
    """What a fetcher gets to see of an account: decrypted credentials included"""
    id: str
    integration_id: str
    label: str
    credentials: Dict[str, str]


StepCallback = Callable[[SyncStep], None]


class DataFetcher(ABC):
    """Pulls data from an external service for one account"""

    @abstractmethod
    def sync(
        self,
        account: AccountConfig,
        since: Optional[datetime] = None,
        on_step: Optional[StepCallback] = None
    ) -> SyncResult:
        """Fetch and normalize metrics; since enables incremental syncs"""

    @abstractmethod
    def validate_credentials(self, credentials: Dict[str, str]) -> bool:
        """Make a cheap API call to check the credentials work"""


class StepRunner:
    """
    Runs fetch phases as SyncSteps, collecting metrics and failures

    Example:
        >>> runner = StepRunner(on_step)
        >>> runner.run('fetch_sales', 'Fetch sales', lambda: fetch(...))
        >>> result = runner.result()
    """

    def __init__(self, on_step: Optional[StepCallback] = None):
        self._on_step = on_step
        self.steps: List[SyncStep] = []
        self.metrics: List[NormalizedMetric] = []
        self.records = 0

    def _emit(self, step: SyncStep) -> None:
        if self._on_step:
            self._on_step(step)

    def run(self, key: str, label: str, phase: Callable[[], tuple]) -> None:
        """
        Run one phase

        Args:
            phase: returns (record_count, metrics)
        """
        self._emit(SyncStep(key, label, SyncStep.STATUS_RUNNING))
        started = time.monotonic()
        try:
            record_count, metrics = phase()
        except Exception as e:
            step = SyncStep(
                key, label, SyncStep.STATUS_ERROR,
                duration_ms=int((time.monotonic() - started) * 1000),
                error=str(e) or type(e).__name__,
            )
        else:
            self.records += record_count
            self.metrics.extend(metrics)
            step = SyncStep(
                key, label, SyncStep.STATUS_SUCCESS,
                record_count=record_count,
                duration_ms=int((time.monotonic() - started) * 1000),
            )
        self.steps.append(step)
        self._emit(step)

    def result(self) -> SyncResult:
        failed = [s for s in self.steps if s.status == SyncStep.STATUS_ERROR]
        if self.steps and len(failed) == len(self.steps):
            return SyncResult(success=False, error='All sync steps failed', steps=self.steps)
        return SyncResult(
            success=True,
            records_processed=self.records,
            metrics=self.metrics,
            steps=self.steps,
            error='Some sync steps failed' if failed else None,
        )


@dataclass
class IntegrationDefinition:
    id: str
    name: str
    description: str
    icon: str
    color: str
    credentials: List[CredentialField]
    metric_types: List[MetricTypeDefinition]
    fetcher: DataFetcher
    required_permissions: List[RequiredPermission] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Catalogue entry for the UI (no fetcher)"""
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'icon': self.icon,
            'color': self.color,
            'credentials': [c.to_dict() for c in self.credentials],
            'metricTypes': [m.to_dict() for m in self.metric_types],
            'requiredPermissions': [p.to_dict() for p in self.required_permissions],
        }
