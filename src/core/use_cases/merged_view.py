"""
Use Case: Merged View

Combina cadastro oficial + quarentena numa lista única, ordenável e
filtrável, mantendo cada motorista oficial visualmente junto das suas
duplicatas pendentes.

A visão é uma projeção somente-leitura: toda alteração passa pelo
classificador ou pelo resolvedor e a visão é reconstruída depois.
Todo o estado de busca/filtro/ordenação chega como ViewQuery imutável.
"""

import logging
import threading
import unicodedata
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum

from src.core.entities.driver import (
    BATCH_REASONS,
    DriverRecord,
    OmnilinkStatus,
    PendingDriverRecord,
    omnilink_status_for,
)
from src.core.interfaces.driver_store import IDriverStore, IPendingDriverStore

logger = logging.getLogger(__name__)


class ItemKind(str, Enum):
    REGISTERED = "registered"
    PENDING_DUPLICATE = "pending-duplicate"
    PENDING_NEW = "pending-new"


class Category(str, Enum):
    ALL = "all"
    REGISTERED = "registered"
    PENDING = "pending"
    DUPLICATES = "duplicates"


class CriterionType(str, Enum):
    ORIGINAL_DRIVER_ID = "original_driver_id"
    REASON = "reason"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


ALL = "all"

SORT_COLUMNS = (
    "full_name", "cpf", "cnh", "phone", "type", "cnh_expiry",
    "omnilink_registration_date", "omnilink_expiry_date", "omnilink_status",
    "indication_status", "indication_reason", "created_at", "status", "reason",
)


@dataclass(frozen=True)
class FilterCriterion:
    """Filtro pontual (drill-down numa duplicidade)."""
    type: CriterionType
    value: str


@dataclass(frozen=True)
class ViewQuery:
    """Parâmetros da visão — substitui todo estado de filtro da UI."""
    search: str = ""
    category: Category = Category.ALL
    omnilink_status: str = ALL          # "all", "current", "lapsed"
    indication_status: str = ALL        # "all", "indicated", "rectified", "not-indicated"
    criterion: FilterCriterion | None = None
    sort_column: str | None = None
    sort_direction: SortDirection = SortDirection.ASC
    today: date | None = None


@dataclass(frozen=True)
class ViewItem:
    """Uma linha da visão combinada."""
    kind: ItemKind
    record: DriverRecord | PendingDriverRecord
    reference: DriverRecord | None = None     # oficial em conflito (duplicatas)
    reference_missing: bool = False           # referência quebrada
    omnilink_status: OmnilinkStatus | None = None

    @property
    def id(self) -> str:
        return self.record.id

    @property
    def is_pending(self) -> bool:
        return self.kind != ItemKind.REGISTERED

    @property
    def original_driver_id(self) -> str | None:
        return getattr(self.record, "original_driver_id", None)

    @property
    def reason(self) -> str | None:
        if isinstance(self.record, PendingDriverRecord):
            return self.record.reason_text
        return None


@dataclass
class MergedView:
    """Resultado de uma reconstrução da visão."""
    sequence: int
    items: tuple[ViewItem, ...]
    total_registered: int = 0
    total_pending: int = 0
    stale: bool = False


# ─── Comparação ──────────────────────────────────────────────

def locale_key(text: str) -> tuple:
    """Chave de ordenação sensível a acentos no estilo pt-BR (á ~ a, A ~ a)."""
    text = text or ""
    decomposed = unicodedata.normalize("NFKD", text)
    base = "".join(c for c in decomposed if not unicodedata.combining(c))
    return (base.casefold(), text.casefold(), text)


def _sort_value(item: ViewItem, column: str):
    if column == "status":
        return "active" if item.kind == ItemKind.REGISTERED else "pending"
    if column == "omnilink_status":
        value = item.omnilink_status
    elif column == "reason":
        value = item.reason
    elif column in SORT_COLUMNS:
        value = getattr(item.record, column, None)
    else:
        value = None

    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, (date, datetime)):
        value = value.isoformat()
    if isinstance(value, bool) or value is None:
        value = ""
    return value


def _sort_key(item: ViewItem, column: str) -> tuple:
    value = _sort_value(item, column)
    if isinstance(value, (int, float)):
        return (0, value)
    return (1, locale_key(str(value)))


def _by_name(record) -> tuple:
    return locale_key(record.full_name)


# ─── Construção ──────────────────────────────────────────────

def _effective_omnilink(record, today: date) -> OmnilinkStatus | None:
    # Status é derivado: recalcula a partir do vencimento quando existe
    if record.omnilink_expiry_date is not None:
        return omnilink_status_for(record.omnilink_expiry_date, today)
    return record.omnilink_status


def build_combined(
    drivers: list[DriverRecord],
    pendings: list[PendingDriverRecord],
    today: date | None = None,
) -> list[ViewItem]:
    """
    Monta a lista agrupada (antes dos filtros).

    1. Oficiais por nome; cada um seguido das suas duplicatas (por nome).
    2. Depois as pendentes sem referência (novos candidatos), por nome.
    3. Pendentes com referência quebrada vão para o fim, sinalizadas.
    """
    today = today or date.today()
    by_reference: dict[str, list[PendingDriverRecord]] = {}
    standalone: list[PendingDriverRecord] = []
    for pending in pendings:
        if pending.original_driver_id:
            by_reference.setdefault(pending.original_driver_id, []).append(pending)
        else:
            standalone.append(pending)

    items: list[ViewItem] = []
    for driver in sorted(drivers, key=_by_name):
        items.append(ViewItem(
            kind=ItemKind.REGISTERED,
            record=driver,
            omnilink_status=_effective_omnilink(driver, today),
        ))
        for dup in sorted(by_reference.pop(driver.id, []), key=_by_name):
            items.append(ViewItem(
                kind=ItemKind.PENDING_DUPLICATE,
                record=dup,
                reference=driver,
                omnilink_status=_effective_omnilink(dup, today),
            ))

    for pending in sorted(standalone, key=_by_name):
        items.append(ViewItem(
            kind=ItemKind.PENDING_NEW,
            record=pending,
            omnilink_status=_effective_omnilink(pending, today),
        ))

    orphans = [p for group in by_reference.values() for p in group]
    if orphans:
        logger.warning(f"{len(orphans)} pending row(s) reference missing drivers")
    for pending in sorted(orphans, key=_by_name):
        items.append(ViewItem(
            kind=ItemKind.PENDING_DUPLICATE,
            record=pending,
            reference_missing=True,
            omnilink_status=_effective_omnilink(pending, today),
        ))

    return items


def _matches_search(item: ViewItem, term: str) -> bool:
    term = term.lower()
    record = item.record
    return any(
        value and term in value.lower()
        for value in (record.full_name, record.cpf, record.cnh, record.phone)
    )


def _duplicate_ids(pendings: list[PendingDriverRecord]) -> set[str]:
    ids: set[str] = set()
    for p in pendings:
        if p.original_driver_id:
            ids.add(p.id)
            ids.add(p.original_driver_id)
        elif p.reasons & BATCH_REASONS:
            ids.add(p.id)
    return ids


def _matches_criterion(item: ViewItem, criterion: FilterCriterion) -> bool:
    if criterion.type == CriterionType.ORIGINAL_DRIVER_ID:
        if item.kind == ItemKind.REGISTERED:
            return item.id == criterion.value
        return item.original_driver_id == criterion.value
    if criterion.type == CriterionType.REASON:
        return item.is_pending and bool(item.reason) and criterion.value in item.reason
    return False


def apply_query(
    items: list[ViewItem],
    pendings: list[PendingDriverRecord],
    query: ViewQuery,
) -> tuple[ViewItem, ...]:
    """Aplica busca → categoria → Omnilink → indicação → critério → ordenação."""
    current = list(items)

    if query.search:
        current = [i for i in current if _matches_search(i, query.search)]

    category = Category(query.category)
    if category == Category.REGISTERED:
        current = [i for i in current if i.kind == ItemKind.REGISTERED]
    elif category == Category.PENDING:
        current = [i for i in current if i.is_pending]
    elif category == Category.DUPLICATES:
        wanted = _duplicate_ids(pendings)
        current = [i for i in current if i.id in wanted]

    if query.omnilink_status != ALL:
        current = [
            i for i in current
            if i.omnilink_status is not None and i.omnilink_status.value == query.omnilink_status
        ]

    if query.indication_status != ALL:
        current = [
            i for i in current
            if i.record.indication_status is not None
            and i.record.indication_status.value == query.indication_status
        ]

    if query.criterion is not None:
        current = [i for i in current if _matches_criterion(i, query.criterion)]

    if query.sort_column:
        current.sort(
            key=lambda i: _sort_key(i, query.sort_column),
            reverse=SortDirection(query.sort_direction) == SortDirection.DESC,
        )

    return tuple(current)


def build_view(
    drivers: list[DriverRecord],
    pendings: list[PendingDriverRecord],
    query: ViewQuery = ViewQuery(),
) -> tuple[ViewItem, ...]:
    """Monta e filtra a visão completa."""
    combined = build_combined(drivers, pendings, today=query.today)
    return apply_query(combined, pendings, query)


def drill_down(item: ViewItem) -> tuple[FilterCriterion, Category] | None:
    """
    Critério para "ver duplicações deste item".

    - Oficial → suas duplicatas.
    - Pendente com referência → duplicatas do mesmo oficial.
    - Pendente sem referência → mesmo motivo de conflito.
    """
    if item.kind == ItemKind.REGISTERED:
        return FilterCriterion(CriterionType.ORIGINAL_DRIVER_ID, item.id), Category.DUPLICATES
    if item.original_driver_id:
        return FilterCriterion(CriterionType.ORIGINAL_DRIVER_ID, item.original_driver_id), Category.DUPLICATES
    if item.reason:
        return FilterCriterion(CriterionType.REASON, item.reason), Category.PENDING
    return None


# ─── Sequenciamento ──────────────────────────────────────────

class ViewSequencer:
    """
    Impede que uma resposta antiga sobrescreva uma visão mais nova.

    Cada reconstrução pega um ticket antes de buscar os dados; só é
    publicada se o ticket for maior que o último publicado.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._issued = 0
        self._published = 0
        self._latest: MergedView | None = None

    def next_ticket(self) -> int:
        with self._lock:
            self._issued += 1
            return self._issued

    def publish(self, ticket: int, view: MergedView) -> bool:
        """Publica a visão se ela for mais nova que a atual."""
        with self._lock:
            if ticket <= self._published:
                return False
            self._published = ticket
            self._latest = view
            return True

    @property
    def latest(self) -> MergedView | None:
        return self._latest


@dataclass
class DriverViewService:
    """Carrega os dois stores e reconstrói a visão."""
    driver_store: IDriverStore
    pending_store: IPendingDriverStore
    sequencer: ViewSequencer = field(default_factory=ViewSequencer)

    def refresh(self, query: ViewQuery = ViewQuery()) -> MergedView:
        ticket = self.sequencer.next_ticket()
        drivers = self.driver_store.list_all()
        pendings = self.pending_store.list_pending()
        view = MergedView(
            sequence=ticket,
            items=build_view(drivers, pendings, query),
            total_registered=len(drivers),
            total_pending=len(pendings),
        )
        view.stale = not self.sequencer.publish(ticket, view)
        if view.stale:
            logger.debug(f"View {ticket} superseded by {self.sequencer.latest.sequence}")
        return view
