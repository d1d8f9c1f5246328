"""
Partner system adapter.

The partner institute sends project records with its own field names, a
USD budget and DD/MM/YYYY dates. This module converts them into the core
construction payload and back again for partner-facing reports.
"""

from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, Field, field_validator

from src.config import get_settings
from src.kernel.models.project import ProjectPayload, ProjectStatus, ProjectView
from src.logging_config import get_logger

logger = get_logger(__name__)

ID_PREFIX = "UES-"
PARTNER_DATE_FORMAT = "%d/%m/%Y"
DESCRIPTION_PREFIX = "Partner project: "

# partner status -> core status
STATUS_MAP: Dict[str, str] = {
    "activo": "active",
    "en_progreso": "active",
    "finalizado": "completed",
    "cancelado": "cancelled",
}
DEFAULT_STATUS = "pending"


class PartnerProjectRecord(BaseModel):
    """A project record in the partner system's format."""

    id_proyecto: str = Field(..., min_length=1)
    titulo_completo: str = Field(..., min_length=1)
    investigador_responsable: str = ""
    ubicacion_geografica: str = ""
    presupuesto_total_usd: float = Field(0, ge=0)
    fecha_inicio: str
    estado: str = ""
    notas_adicionales: Optional[str] = None

    @field_validator("fecha_inicio")
    @classmethod
    def validate_date(cls, v: str) -> str:
        try:
            datetime.strptime(v, PARTNER_DATE_FORMAT)
        except ValueError:
            raise ValueError("fecha_inicio must use the DD/MM/YYYY format")
        return v

    @property
    def start_date(self) -> date:
        return datetime.strptime(self.fecha_inicio, PARTNER_DATE_FORMAT).date()


def map_status(partner_status: str) -> str:
    return STATUS_MAP.get(partner_status, DEFAULT_STATUS)


class PartnerAdapter:
    """
    Translates between partner records and core project payloads.

    Conversions:
    - id gets the ``UES-`` prefix
    - titles longer than the limit are cut to ``limit - 3`` characters plus "..."
    - the USD budget is converted at a fixed exchange rate and rounded
    - DD/MM/YYYY becomes an ISO date
    - the partner's own fields are kept under ``source``
    """

    def __init__(
        self,
        exchange_rate: Optional[float] = None,
        title_max_length: Optional[int] = None,
    ):
        settings = get_settings()
        self.exchange_rate = settings.partner_exchange_rate if exchange_rate is None else exchange_rate
        self.title_max_length = (
            settings.partner_title_max_length if title_max_length is None else title_max_length
        )

    def shorten_title(self, title: str) -> str:
        if len(title) <= self.title_max_length:
            return title
        return title[: self.title_max_length - 3] + "..."

    def to_core_payload(self, record: PartnerProjectRecord, faculty: str) -> ProjectPayload:
        logger.info("Converting partner project %s", record.id_proyecto)
        return ProjectPayload(
            id=f"{ID_PREFIX}{record.id_proyecto}",
            title=self.shorten_title(record.titulo_completo),
            description=f"{DESCRIPTION_PREFIX}{record.titulo_completo}",
            faculty=faculty,
            budget=round(record.presupuesto_total_usd * self.exchange_rate),
            start_date=record.start_date,
            source={
                "partner_id": record.id_proyecto,
                "full_title": record.titulo_completo,
                "lead_researcher": record.investigador_responsable,
                "location": record.ubicacion_geografica,
                "budget_usd": record.presupuesto_total_usd,
                "partner_status": record.estado,
                "status": map_status(record.estado),
            },
        )

    def to_core_payloads(self, records: Iterable[PartnerProjectRecord], faculty: str) -> List[ProjectPayload]:
        return [self.to_core_payload(record, faculty) for record in records]

    def to_partner_record(
        self,
        view: ProjectView,
        source: Optional[Dict[str, Any]] = None,
    ) -> PartnerProjectRecord:
        """Convert a project view back into the partner's format for reporting."""
        source = source or {}
        partner_id = view.id[len(ID_PREFIX):] if view.id.startswith(ID_PREFIX) else view.id
        return PartnerProjectRecord(
            id_proyecto=partner_id,
            titulo_completo=source.get("full_title", view.title),
            investigador_responsable=source.get("lead_researcher", "Assigned supervisor"),
            ubicacion_geografica=source.get("location", ""),
            presupuesto_total_usd=round(view.budget / self.exchange_rate, 2),
            fecha_inicio=view.start_date.strftime(PARTNER_DATE_FORMAT),
            estado="finalizado" if view.status == ProjectStatus.CLOSED else "en_progreso",
            notas_adicionales="Project adapted from the registry",
        )
