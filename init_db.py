# init_db.py
"""
Create the subjects/streams tables and install the reference curriculum.

Usage: STREAMINT_DATABASE_URL=postgresql://... python init_db.py
"""

from __future__ import annotations

import logging
import os
import sys

from dotenv import load_dotenv

from streamint.reference.curriculum import REFERENCE_STREAMS, REFERENCE_SUBJECTS
from streamint.store.sql import make_engine, seed_reference_data

logger = logging.getLogger(__name__)


def init_db(database_url: str):
    engine = make_engine(database_url)
    inserted = seed_reference_data(engine, REFERENCE_SUBJECTS, REFERENCE_STREAMS)
    logger.info("Inserted %d subjects and %d streams", inserted["subjects"], inserted["streams"])
    return inserted


if __name__ == "__main__":
    load_dotenv()
    logging.basicConfig(level=logging.INFO)

    url = os.getenv("STREAMINT_DATABASE_URL", "").strip()
    if not url:
        print("STREAMINT_DATABASE_URL is not set")
        sys.exit(1)
    init_db(url)
