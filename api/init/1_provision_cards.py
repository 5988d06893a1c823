"""
Script to create the missing learning cards of one user.

Creates one fresh card per catalog topic at or below the given CEFR level,
skipping topics the user already has a card for. Safe to run repeatedly.

Usage:
    python init/1_provision_cards.py --user-id <id> --level B1 [--language fr] [--catalog path.json]
"""
import argparse
import sys
import logging
from pathlib import Path
from sqlmodel import Session

# Add the api directory to Python path so we can import from app
script_dir = Path(__file__).parent
api_dir = script_dir.parent
sys.path.insert(0, str(api_dir))

from app.core.database import engine, init_db
from app.models.enums import CEFRLevel
from app.services.card_repository import SqlCardRepository
from app.services.provisioning_service import ensure_cards_for_level, load_topic_catalog

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Provision learning cards for a user")
    parser.add_argument("--user-id", required=True, help="User ID")
    parser.add_argument("--level", required=True, choices=[level.value for level in CEFRLevel], help="CEFR level")
    parser.add_argument("--language", default="fr", help="Target language code (default: fr)")
    parser.add_argument("--catalog", type=Path, default=None, help="Topic catalog JSON (default: bundled catalog)")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    logger.info("=" * 60)
    logger.info("Provisioning cards for user %s (level %s, language %s)", args.user_id, args.level, args.language)
    logger.info("=" * 60)

    init_db()
    catalog = load_topic_catalog(args.catalog)

    with Session(engine) as session:
        repository = SqlCardRepository(session)
        created = ensure_cards_for_level(
            repository,
            args.user_id,
            CEFRLevel(args.level),
            language=args.language,
            catalog=catalog,
        )
        for card in created:
            logger.info("  Created card %s (%s, %s): %s", card.id, card.kind, card.level, card.title)

    logger.info("Done: %d card(s) created", len(created))
    return 0


if __name__ == "__main__":
    sys.exit(main())
