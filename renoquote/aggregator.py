"""
Quote aggregator: owns the Quote → SubQuote → Material tree.

Every structural mutation ends with a bottom-up recompute of the roll-ups:

    material.total_price   = quantity × unit_price
    sub_quote.labor_cost   = labor_hours × labor_rate
    sub_quote.materials_cost = Σ materials.total_price   (when it has material lines)
    sub_quote.total_cost   = materials_cost + labor_cost
    quote.materials_total  = Σ sub_quotes.materials_cost
    quote.labor_total      = Σ sub_quotes.labor_cost
    quote.total_amount     = materials_total + labor_total

Totals are always re-derived from the current children, never incremented.
Each mutate + recompute sequence holds a per-quote lock and commits as one
transaction; any error rolls the whole sequence back.
"""

import logging
import threading
import weakref
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Union

from sqlalchemy import func, inspect
from sqlalchemy.orm import Session

from . import models
from .config import settings
from .consolidator import ConsolidatedEstimate
from .errors import InvalidState, NotFound, ValidationError
from .estimator import round_money
from .models import EDITABLE_STATUSES, STATUS_TRANSITIONS, QuoteStatus

logger = logging.getLogger(__name__)

QUOTE_EDITABLE_FIELDS = ("title", "description", "room_type", "surface_area", "quality_tier", "notes", "valid_days")
SUB_QUOTE_EDITABLE_FIELDS = ("work_category", "title", "description", "labor_hours", "labor_rate", "materials_cost", "priority")
MATERIAL_EDITABLE_FIELDS = ("name", "quantity", "unit", "unit_price", "brand", "reference")
QUOTE_REQUIRED_FIELDS = ("title", "quality_tier", "valid_days")
SUB_QUOTE_REQUIRED_FIELDS = ("work_category", "title", "labor_hours", "labor_rate", "materials_cost", "priority")
MATERIAL_REQUIRED_FIELDS = ("name", "quantity", "unit", "unit_price")

StatusListener = Callable[[models.Quote, QuoteStatus, QuoteStatus], None]

# --- Per-quote locks (single writer per quote within this process) ---

# Entries live only while some caller holds the lock object.
_locks = weakref.WeakValueDictionary()
_locks_guard = threading.Lock()


def _quote_lock(quote_id: str) -> threading.RLock:
    with _locks_guard:
        lock = _locks.get(quote_id)
        if lock is None:
            lock = threading.RLock()
            _locks[quote_id] = lock
        return lock


# --- Validation helpers ---

def _require_title(title: Optional[str]):
    if not title or not str(title).strip():
        raise ValidationError("title must not be empty")


def _reject_nulls(fields: dict, required: Iterable[str]):
    nulled = sorted(name for name in required if name in fields and fields[name] is None)
    if nulled:
        raise ValidationError(f"Fields cannot be null: {', '.join(nulled)}", {"fields": nulled})


def _require_non_negative(**values):
    for name, value in values.items():
        if value is None:
            continue
        if value < 0:
            raise ValidationError(f"{name} must not be negative", {name: value})


class QuoteAggregator:
    """
    Quote tree operations over a SQLAlchemy session.

    The session is owned by the caller (one per request); the aggregator
    commits or rolls back the sequences it runs.
    """

    def __init__(self, db: Session, listeners: Iterable[StatusListener] = None):
        self.db = db
        self.listeners = list(listeners or [])

    def add_listener(self, listener: StatusListener):
        """Register a callable notified of every status transition, after commit."""
        self.listeners.append(listener)

    @contextmanager
    def _mutation(self, quote_id: str):
        with _quote_lock(quote_id):
            # Anything loaded before the lock may predate another writer's commit
            self.db.expire_all()
            try:
                yield
                self.db.commit()
            except Exception:
                self.db.rollback()
                logger.warning(f"Rolled back mutation on quote {quote_id}")
                raise

    # --- Lookups ---

    def get_quote(self, quote_id: str) -> models.Quote:
        quote = self.db.query(models.Quote).filter(models.Quote.id == quote_id).first()
        if not quote:
            raise NotFound("Quote", quote_id)
        return quote

    def list_quotes(self, owner_id: Optional[int] = None, status: Optional[str] = None) -> List[models.Quote]:
        query = self.db.query(models.Quote)
        if owner_id is not None:
            query = query.filter(models.Quote.owner_id == owner_id)
        if status:
            try:
                query = query.filter(models.Quote.status == QuoteStatus(status))
            except ValueError:
                raise ValidationError(f"Unknown status '{status}'")
        return query.order_by(models.Quote.created_at.desc()).all()

    def get_sub_quote(self, sub_quote_id: str) -> models.SubQuote:
        sub = self.db.query(models.SubQuote).filter(models.SubQuote.id == sub_quote_id).first()
        if not sub:
            raise NotFound("SubQuote", sub_quote_id)
        return sub

    def list_sub_quotes(self, quote_id: str) -> List[models.SubQuote]:
        self.get_quote(quote_id)
        return (
            self.db.query(models.SubQuote)
            .filter(models.SubQuote.quote_id == quote_id)
            .order_by(models.SubQuote.priority)
            .all()
        )

    def get_material(self, sub_quote_id: str, material_id: str) -> models.Material:
        material = self.db.query(models.Material).filter(
            models.Material.id == material_id,
            models.Material.sub_quote_id == sub_quote_id,
        ).first()
        if not material:
            raise NotFound("Material", material_id)
        return material

    def list_materials(self, sub_quote_id: str) -> List[models.Material]:
        self.get_sub_quote(sub_quote_id)
        return self._materials_of(sub_quote_id)

    def _materials_of(self, sub_quote_id: str) -> List[models.Material]:
        return self.db.query(models.Material).filter(models.Material.sub_quote_id == sub_quote_id).all()

    def _sub_quotes_of(self, quote_id: str) -> List[models.SubQuote]:
        return self.db.query(models.SubQuote).filter(models.SubQuote.quote_id == quote_id).all()

    def _lock_quote_row(self, quote: models.Quote) -> models.Quote:
        """Re-read the quote row inside the mutation (SELECT ... FOR UPDATE where supported)."""
        # The identity key survives expiry; quote.id would reload the row
        quote_id = inspect(quote).identity[0]
        row = (
            self.db.query(models.Quote)
            .filter(models.Quote.id == quote_id)
            .populate_existing()
            .with_for_update()
            .first()
        )
        if row is None:
            raise NotFound("Quote", quote_id)
        return row

    def _require_editable(self, quote: models.Quote):
        self._lock_quote_row(quote)
        if quote.status not in EDITABLE_STATUSES:
            raise InvalidState(
                f"Quote {quote.id} is '{quote.status.value}'; structural edits need draft or pending",
                {"quote_id": quote.id, "status": quote.status.value},
            )

    # --- Roll-ups ---

    def _recompute_sub_quote(self, sub: models.SubQuote):
        self.db.flush()
        sub.labor_cost = round_money((sub.labor_hours or 0.0) * (sub.labor_rate or 0.0))
        materials = self._materials_of(sub.id)
        if materials:
            sub.materials_cost = round_money(sum(m.total_price for m in materials))
        sub.total_cost = round_money((sub.materials_cost or 0.0) + sub.labor_cost)

    def _recompute_quote_totals(self, quote: models.Quote):
        self.db.flush()
        sub_quotes = self._sub_quotes_of(quote.id)
        quote.materials_total = round_money(sum(s.materials_cost or 0.0 for s in sub_quotes))
        quote.labor_total = round_money(sum(s.labor_cost or 0.0 for s in sub_quotes))
        quote.total_amount = round_money(quote.materials_total + quote.labor_total)
        quote.updated_at = datetime.utcnow()
        self.db.flush()

    def recompute_quote_totals(self, quote_id: str) -> models.Quote:
        """Re-derive the quote's totals from its current sub-quotes. Idempotent."""
        quote = self.get_quote(quote_id)
        with self._mutation(quote_id):
            self._recompute_quote_totals(quote)
        return quote

    # --- Quotes ---

    def create_quote(
        self,
        title: str,
        owner_id: Optional[int] = None,
        room_type: Optional[str] = None,
        surface_area: Optional[float] = None,
        description: Optional[str] = None,
        quality_tier: str = "standard",
    ) -> models.Quote:
        _require_title(title)
        if surface_area is not None and surface_area <= 0:
            raise ValidationError("surface_area must be positive", {"surface_area": surface_area})

        quote = models.Quote(
            owner_id=owner_id,
            title=title.strip(),
            description=description,
            room_type=room_type,
            surface_area=surface_area,
            quality_tier=quality_tier or "standard",
            status=QuoteStatus.DRAFT,
            materials_total=0.0,
            labor_total=0.0,
            total_amount=0.0,
            valid_days=settings.QUOTE_VALID_DAYS,
        )
        self.db.add(quote)
        self.db.commit()
        self.db.refresh(quote)
        logger.info(f"Quote {quote.id} created for owner {owner_id}")
        return quote

    def update_quote(self, quote_id: str, fields: dict) -> models.Quote:
        """Descriptive fields only; totals and status have their own operations."""
        quote = self.get_quote(quote_id)
        unknown = set(fields) - set(QUOTE_EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Fields not editable: {', '.join(sorted(unknown))}")
        if not fields:
            raise ValidationError("No fields to update")
        _reject_nulls(fields, QUOTE_REQUIRED_FIELDS)
        if "title" in fields:
            _require_title(fields["title"])
        if fields.get("surface_area") is not None and fields["surface_area"] <= 0:
            raise ValidationError("surface_area must be positive", {"surface_area": fields["surface_area"]})

        with self._mutation(quote_id):
            self._require_editable(quote)
            for name, value in fields.items():
                setattr(quote, name, value)
            quote.updated_at = datetime.utcnow()
        return quote

    def delete_quote(self, quote_id: str):
        """Cascades to sub-quotes, their materials, and photos."""
        quote = self.get_quote(quote_id)
        with self._mutation(quote_id):
            self.db.delete(quote)
        logger.info(f"Quote {quote_id} deleted")

    def duplicate_quote(self, quote_id: str, owner_id: Optional[int] = None) -> models.Quote:
        """
        Deep copy with fresh ids, reset to draft.

        Totals are copied verbatim, not recomputed: the source satisfied the
        roll-up rules, so the copy does too.
        """
        source = self.get_quote(quote_id)
        with _quote_lock(quote_id):
            self.db.expire_all()
            try:
                copy = models.Quote(
                    owner_id=owner_id if owner_id is not None else source.owner_id,
                    title=f"{source.title} (copy)",
                    description=source.description,
                    room_type=source.room_type,
                    surface_area=source.surface_area,
                    quality_tier=source.quality_tier,
                    notes=source.notes,
                    status=QuoteStatus.DRAFT,
                    materials_total=source.materials_total,
                    labor_total=source.labor_total,
                    total_amount=source.total_amount,
                    valid_days=source.valid_days,
                )
                self.db.add(copy)
                self.db.flush()

                for sub in self._sub_quotes_of(source.id):
                    sub_copy = models.SubQuote(
                        quote_id=copy.id,
                        work_category=sub.work_category,
                        title=sub.title,
                        description=sub.description,
                        labor_hours=sub.labor_hours,
                        labor_rate=sub.labor_rate,
                        labor_cost=sub.labor_cost,
                        materials_cost=sub.materials_cost,
                        total_cost=sub.total_cost,
                        priority=sub.priority,
                    )
                    self.db.add(sub_copy)
                    self.db.flush()
                    for mat in self._materials_of(sub.id):
                        self.db.add(models.Material(
                            sub_quote_id=sub_copy.id,
                            name=mat.name,
                            quantity=mat.quantity,
                            unit=mat.unit,
                            unit_price=mat.unit_price,
                            total_price=mat.total_price,
                            brand=mat.brand,
                            reference=mat.reference,
                        ))
                self.db.commit()
            except Exception:
                self.db.rollback()
                logger.warning(f"Rolled back duplication of quote {quote_id}")
                raise

        self.db.refresh(copy)
        logger.info(f"Quote {quote_id} duplicated as {copy.id}")
        return copy

    # --- Status ---

    def transition(self, quote_id: str, new_status: Union[str, QuoteStatus], reason: Optional[str] = None) -> models.Quote:
        quote = self.get_quote(quote_id)
        try:
            target = QuoteStatus(new_status)
        except ValueError:
            raise ValidationError(f"Unknown status '{new_status}'")

        with self._mutation(quote_id):
            self._lock_quote_row(quote)
            old = quote.status
            if target not in STATUS_TRANSITIONS[old]:
                raise InvalidState(
                    f"Cannot move quote {quote_id} from '{old.value}' to '{target.value}'",
                    {"quote_id": quote_id, "from": old.value, "to": target.value},
                )
            quote.status = target
            if target == QuoteStatus.APPROVED:
                quote.approved_at = datetime.utcnow()
            elif target == QuoteStatus.REJECTED:
                quote.rejection_reason = reason
            quote.updated_at = datetime.utcnow()

        logger.info(f"Quote {quote_id}: {old.value} -> {target.value}")
        self._notify(quote, old, target)
        return quote

    def _notify(self, quote: models.Quote, old: QuoteStatus, new: QuoteStatus):
        for listener in self.listeners:
            try:
                listener(quote, old, new)
            except Exception:
                # A failing notifier must not undo a committed transition
                logger.exception(f"Status listener failed for quote {quote.id}")

    def submit(self, quote_id: str) -> models.Quote:
        return self.transition(quote_id, QuoteStatus.PENDING)

    def approve(self, quote_id: str) -> models.Quote:
        return self.transition(quote_id, QuoteStatus.APPROVED)

    def reject(self, quote_id: str, reason: Optional[str] = None) -> models.Quote:
        return self.transition(quote_id, QuoteStatus.REJECTED, reason=reason)

    def expire(self, quote_id: str) -> models.Quote:
        return self.transition(quote_id, QuoteStatus.EXPIRED)

    def begin_analysis(self, quote_id: str) -> models.Quote:
        return self.transition(quote_id, QuoteStatus.ANALYZING)

    def finish_analysis(self, quote_id: str, analysis: Optional[dict] = None) -> models.Quote:
        """Leave 'analyzing' for 'pending'. Stores the analysis when one is given."""
        quote = self.get_quote(quote_id)
        with self._mutation(quote_id):
            self._lock_quote_row(quote)
            old = quote.status
            if old != QuoteStatus.ANALYZING:
                raise InvalidState(
                    f"Quote {quote_id} is not being analyzed",
                    {"quote_id": quote_id, "status": old.value},
                )
            if analysis is not None:
                quote.analysis_json = analysis
                quote.analyzed_at = datetime.utcnow()
            quote.status = QuoteStatus.PENDING
            quote.updated_at = datetime.utcnow()

        logger.info(f"Quote {quote_id}: {old.value} -> {QuoteStatus.PENDING.value}")
        self._notify(quote, old, QuoteStatus.PENDING)
        return quote

    # --- Sub-quotes ---

    def add_sub_quote(
        self,
        quote_id: str,
        work_category: str,
        title: str,
        labor_hours: float = 0.0,
        labor_rate: Optional[float] = None,
        materials_cost: float = 0.0,
        priority: Optional[int] = None,
        description: Optional[str] = None,
    ) -> models.SubQuote:
        _require_title(title)
        if not work_category:
            raise ValidationError("work_category is required")
        if labor_rate is None:
            labor_rate = settings.DEFAULT_LABOR_RATE
        _require_non_negative(labor_hours=labor_hours, labor_rate=labor_rate, materials_cost=materials_cost)

        quote = self.get_quote(quote_id)
        with self._mutation(quote_id):
            self._require_editable(quote)
            if priority is None:
                current_max = self.db.query(func.max(models.SubQuote.priority)).filter(
                    models.SubQuote.quote_id == quote_id
                ).scalar()
                priority = (current_max or 0) + 1

            sub = models.SubQuote(
                quote_id=quote_id,
                work_category=work_category,
                title=title.strip(),
                description=description,
                labor_hours=labor_hours,
                labor_rate=labor_rate,
                materials_cost=round_money(materials_cost),
                priority=priority,
            )
            self.db.add(sub)
            self._recompute_sub_quote(sub)
            self._recompute_quote_totals(quote)
        return sub

    def update_sub_quote(self, sub_quote_id: str, fields: dict) -> models.SubQuote:
        """Merge supplied fields over the stored record, then recompute."""
        unknown = set(fields) - set(SUB_QUOTE_EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Fields not editable: {', '.join(sorted(unknown))}")
        if not fields:
            raise ValidationError("No fields to update")
        _reject_nulls(fields, SUB_QUOTE_REQUIRED_FIELDS)
        if "title" in fields:
            _require_title(fields["title"])
        _require_non_negative(
            labor_hours=fields.get("labor_hours"),
            labor_rate=fields.get("labor_rate"),
            materials_cost=fields.get("materials_cost"),
        )

        sub = self.get_sub_quote(sub_quote_id)
        quote = sub.quote
        with self._mutation(quote.id):
            self._require_editable(quote)
            if "materials_cost" in fields and self._materials_of(sub.id):
                raise ValidationError(
                    "materials_cost is derived from the material lines of this sub-quote",
                    {"sub_quote_id": sub.id},
                )
            for name, value in fields.items():
                if name == "materials_cost":
                    value = round_money(value)
                setattr(sub, name, value)
            self._recompute_sub_quote(sub)
            self._recompute_quote_totals(quote)
        return sub

    def delete_sub_quote(self, sub_quote_id: str):
        sub = self.get_sub_quote(sub_quote_id)
        quote = sub.quote
        with self._mutation(quote.id):
            self._require_editable(quote)
            self.db.delete(sub)
            self._recompute_quote_totals(quote)

    def reorder_sub_quotes(self, quote_id: str, order: List[dict]) -> List[models.SubQuote]:
        """order: [{"id": sub_quote_id, "priority": int}, ...]"""
        quote = self.get_quote(quote_id)
        with self._mutation(quote_id):
            self._require_editable(quote)
            by_id = {s.id: s for s in self._sub_quotes_of(quote_id)}
            for item in order:
                sub = by_id.get(item["id"])
                if sub is None:
                    raise NotFound("SubQuote", item["id"])
                sub.priority = int(item["priority"])
            self._recompute_quote_totals(quote)
        return self.list_sub_quotes(quote_id)

    # --- Materials ---

    def add_material(
        self,
        sub_quote_id: str,
        name: str,
        quantity: float,
        unit_price: float,
        unit: str = "piece",
        brand: Optional[str] = None,
        reference: Optional[str] = None,
    ) -> models.Material:
        if not name or not str(name).strip():
            raise ValidationError("material name must not be empty")
        _require_non_negative(quantity=quantity, unit_price=unit_price)

        sub = self.get_sub_quote(sub_quote_id)
        quote = sub.quote
        with self._mutation(quote.id):
            self._require_editable(quote)
            material = models.Material(
                sub_quote_id=sub.id,
                name=name.strip(),
                quantity=quantity,
                unit=unit,
                unit_price=unit_price,
                total_price=round_money(quantity * unit_price),
                brand=brand,
                reference=reference,
            )
            self.db.add(material)
            self._recompute_sub_quote(sub)
            self._recompute_quote_totals(quote)
        return material

    def update_material(self, sub_quote_id: str, material_id: str, fields: dict) -> models.Material:
        unknown = set(fields) - set(MATERIAL_EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Fields not editable: {', '.join(sorted(unknown))}")
        if not fields:
            raise ValidationError("No fields to update")
        _reject_nulls(fields, MATERIAL_REQUIRED_FIELDS)
        if "name" in fields and (not fields["name"] or not str(fields["name"]).strip()):
            raise ValidationError("material name must not be empty")
        _require_non_negative(quantity=fields.get("quantity"), unit_price=fields.get("unit_price"))

        material = self.get_material(sub_quote_id, material_id)
        sub = material.sub_quote
        quote = sub.quote
        with self._mutation(quote.id):
            self._require_editable(quote)
            for name, value in fields.items():
                setattr(material, name, value)
            material.total_price = round_money(material.quantity * material.unit_price)
            self._recompute_sub_quote(sub)
            self._recompute_quote_totals(quote)
        return material

    def delete_material(self, sub_quote_id: str, material_id: str):
        material = self.get_material(sub_quote_id, material_id)
        sub = material.sub_quote
        quote = sub.quote
        with self._mutation(quote.id):
            self._require_editable(quote)
            self.db.delete(material)
            self.db.flush()
            if not self._materials_of(sub.id):
                # Last line gone: nothing left to derive from
                sub.materials_cost = 0.0
            self._recompute_sub_quote(sub)
            self._recompute_quote_totals(quote)

    # --- Bulk population ---

    def generate_from_consolidated(
        self,
        quote_id: str,
        consolidated: Union[ConsolidatedEstimate, dict],
    ) -> List[models.SubQuote]:
        """
        One sub-quote (with its materials) per consolidated estimate, in
        consolidation order, priorities 1..N. Commits as a single batch.
        """
        if isinstance(consolidated, ConsolidatedEstimate):
            consolidated = consolidated.to_dict()
        estimates = consolidated.get("estimates") or []

        quote = self.get_quote(quote_id)
        created = []
        with self._mutation(quote_id):
            self._require_editable(quote)
            for priority, estimate in enumerate(estimates, start=1):
                sub = models.SubQuote(
                    quote_id=quote_id,
                    work_category=estimate["work_category"],
                    title=estimate.get("work_name") or estimate["work_category"],
                    description=estimate.get("description"),
                    labor_hours=estimate["labor_hours"],
                    labor_rate=estimate["labor_rate"],
                    materials_cost=0.0,
                    priority=priority,
                )
                self.db.add(sub)
                self.db.flush()
                for line in estimate.get("material_lines") or []:
                    self.db.add(models.Material(
                        sub_quote_id=sub.id,
                        name=line["name"],
                        quantity=line["quantity"],
                        unit=line["unit"],
                        unit_price=line["unit_price"],
                        total_price=round_money(line["quantity"] * line["unit_price"]),
                    ))
                self._recompute_sub_quote(sub)
                created.append(sub)
            self._recompute_quote_totals(quote)

        logger.info(f"Generated {len(created)} sub-quotes for quote {quote_id}")
        return created

    # --- Photos ---

    def add_photos(self, quote_id: str, photos: List[dict]) -> List[models.QuotePhoto]:
        """photos: [{"url": str, "description"?: str, "explicit_categories"?: [str]}]"""
        if not photos:
            raise ValidationError("At least one photo is required")
        for photo in photos:
            if not photo.get("url"):
                raise ValidationError("Every photo needs a url")

        quote = self.get_quote(quote_id)
        created = []
        with self._mutation(quote_id):
            self._require_editable(quote)
            for photo in photos:
                row = models.QuotePhoto(
                    quote_id=quote_id,
                    url=photo["url"],
                    description=photo.get("description"),
                    explicit_categories=list(photo.get("explicit_categories") or []),
                )
                self.db.add(row)
                created.append(row)
        return created

    def list_photos(self, quote_id: str) -> List[models.QuotePhoto]:
        self.get_quote(quote_id)
        return (
            self.db.query(models.QuotePhoto)
            .filter(models.QuotePhoto.quote_id == quote_id)
            .order_by(models.QuotePhoto.created_at)
            .all()
        )

    def delete_photo(self, quote_id: str, photo_id: str):
        quote = self.get_quote(quote_id)
        photo = self.db.query(models.QuotePhoto).filter(
            models.QuotePhoto.id == photo_id,
            models.QuotePhoto.quote_id == quote_id,
        ).first()
        if not photo:
            raise NotFound("QuotePhoto", photo_id)
        with self._mutation(quote_id):
            self._require_editable(quote)
            self.db.delete(photo)

    # --- Read models ---

    def quote_summary(self, quote_id: str) -> dict:
        quote = self.get_quote(quote_id)
        return {
            **quote_to_dict(quote),
            "sub_quotes": [
                {
                    **sub_quote_to_dict(sub),
                    "materials": [material_to_dict(m) for m in self._materials_of(sub.id)],
                }
                for sub in self.list_sub_quotes(quote_id)
            ],
        }

    def compare_quotes(self, quote_ids: List[str]) -> dict:
        if len(quote_ids) < 2:
            raise ValidationError("At least 2 quotes are required for a comparison")
        quotes = [self.get_quote(qid) for qid in quote_ids]
        amounts = [q.total_amount or 0.0 for q in quotes]
        cheapest = min(quotes, key=lambda q: q.total_amount or 0.0)
        most_expensive = max(quotes, key=lambda q: q.total_amount or 0.0)
        return {
            "quotes": [
                {
                    "id": q.id,
                    "title": q.title,
                    "total_amount": q.total_amount,
                    "materials_total": q.materials_total,
                    "labor_total": q.labor_total,
                    "sub_quote_count": len(self._sub_quotes_of(q.id)),
                }
                for q in quotes
            ],
            "cheapest": cheapest.id,
            "most_expensive": most_expensive.id,
            "average": round_money(sum(amounts) / len(amounts)),
            "price_difference": round_money(max(amounts) - min(amounts)),
        }


def quote_to_dict(q: models.Quote) -> dict:
    return {
        "id": q.id,
        "owner_id": q.owner_id,
        "title": q.title,
        "description": q.description,
        "status": q.status.value if q.status else None,
        "room_type": q.room_type,
        "surface_area": q.surface_area,
        "quality_tier": q.quality_tier,
        "notes": q.notes,
        "materials_total": q.materials_total,
        "labor_total": q.labor_total,
        "total_amount": q.total_amount,
        "valid_days": q.valid_days,
        "analyzed_at": q.analyzed_at.isoformat() if q.analyzed_at else None,
        "approved_at": q.approved_at.isoformat() if q.approved_at else None,
        "rejection_reason": q.rejection_reason,
        "created_at": q.created_at.isoformat() if q.created_at else None,
        "updated_at": q.updated_at.isoformat() if q.updated_at else None,
    }


def sub_quote_to_dict(s: models.SubQuote) -> dict:
    return {
        "id": s.id,
        "quote_id": s.quote_id,
        "work_category": s.work_category,
        "title": s.title,
        "description": s.description,
        "labor_hours": s.labor_hours,
        "labor_rate": s.labor_rate,
        "labor_cost": s.labor_cost,
        "materials_cost": s.materials_cost,
        "total_cost": s.total_cost,
        "priority": s.priority,
    }


def material_to_dict(m: models.Material) -> dict:
    return {
        "id": m.id,
        "sub_quote_id": m.sub_quote_id,
        "name": m.name,
        "quantity": m.quantity,
        "unit": m.unit,
        "unit_price": m.unit_price,
        "total_price": m.total_price,
        "brand": m.brand,
        "reference": m.reference,
    }


def photo_to_dict(p: models.QuotePhoto) -> dict:
    return {
        "id": p.id,
        "quote_id": p.quote_id,
        "url": p.url,
        "description": p.description,
        "explicit_categories": p.explicit_categories or [],
        "created_at": p.created_at.isoformat() if p.created_at else None,
    }
