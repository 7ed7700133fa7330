"""Demo partners and fee policies for local runs"""

import logging
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy.orm import Session

from pg_gateway.infrastructure.database.models import FeePolicyRecord, PartnerRecord

logger = logging.getLogger(__name__)

POLICY_EPOCH = datetime(2020, 1, 1, tzinfo=timezone.utc)

DEMO_PARTNERS = [
    # (id, code, name, active, percentage, fixed_fee)
    (1, "MOCK1", "Mock Partner 1", True, Decimal("0.0235"), Decimal("100")),
    (2, "TESTPAY1", "Test Provider Partner", True, Decimal("0.0300"), Decimal("100")),
    (3, "MOCK3", "Suspended Partner", False, Decimal("0.0235"), Decimal("0")),
]


def seed_demo_data(db: Session) -> int:
    """
    Insert demo partners with one fee policy each, skipping existing ids.

    Returns:
        Number of partners inserted
    """
    inserted = 0
    for partner_id, code, name, active, percentage, fixed_fee in DEMO_PARTNERS:
        if db.get(PartnerRecord, partner_id) is not None:
            continue

        db.add(PartnerRecord(id=partner_id, code=code, name=name, active=active))
        db.flush()
        db.add(
            FeePolicyRecord(
                partner_id=partner_id,
                effective_from=POLICY_EPOCH,
                percentage=percentage,
                fixed_fee=fixed_fee,
            )
        )
        inserted += 1

    db.commit()
    logger.info("Demo data seeded", extra={"partners_inserted": inserted})
    return inserted
