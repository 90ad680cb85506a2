# barbershop/data.py

import logging

from sqlmodel import Session, select

from .db import storage_guard
from .models import Service

logger = logging.getLogger(__name__)

# Demo catalog: name -> (price, minutes)
SERVICES = {
    "Shape up": (8.0, 15),
    "Beard trim": (10.0, 15),
    "Haircut": (18.0, 30),
    "Fade": (22.0, 30),
    "Scissors cut": (25.0, 30),
    "Cut and beard": (28.0, 45),
}


def seed_services(session: Session) -> int:
    """Insert the demo services that are not there yet; returns how many were added."""
    added = 0
    with storage_guard(session, "service seeding"):
        existing = set(session.exec(select(Service.name)).all())
        for name, (price, minutes) in SERVICES.items():
            if name in existing:
                continue
            session.add(Service(name=name, price=price, duration_minutes=minutes))
            added += 1
        session.commit()
    if added:
        logger.info("Seeded %d demo services", added)
    return added
