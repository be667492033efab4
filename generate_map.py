#!/usr/bin/env python3
"""
MangroveWatch - Generate Interactive Report Map
Loads the stored reports and creates an interactive map.
"""
import os
import sys
from datetime import datetime

# Add src to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from dotenv import load_dotenv

# Load environment variables before settings are read
load_dotenv()

from src.core.config import settings
from src.core.logging import setup_logging
from src.crowdsource.errors import PersistenceError
from src.crowdsource.triage import build_controller
from src.database import SnapshotRepository, init_db
from src.visualization.map_generator import create_reports_map, locate_reports


def main():
    setup_logging()

    print("=" * 60)
    print("MangroveWatch - Generating Report Map")
    print("=" * 60)

    db = init_db(settings.database_url)
    if not db.check_connection():
        print("ERROR: database is not reachable")
        sys.exit(1)

    try:
        controller = build_controller(SnapshotRepository(db))
    except PersistenceError as e:
        print(f"ERROR: could not load stored reports: {e}")
        sys.exit(1)
    finally:
        db.close()

    reports = controller.list_reports()
    print(f"\nTotal reports found: {len(reports)}")

    if not reports:
        print("No reports have been submitted yet.")
        return

    # Statistics
    stats = controller.store.get_statistics()
    print(f"\nStatistics:")
    for status, count in stats["by_status"].items():
        print(f"  - {status + ':':<20}{count}")
    print(f"  - {'With photo:':<20}{stats['with_photo']}")
    print(f"  - {'Avg confidence:':<20}{stats['average_confidence']}%")
    print(f"  - {'Located:':<20}{len(locate_reports(reports))}")

    print("\nGenerating interactive map...")

    report_map = create_reports_map(
        reports=reports,
        title=f"MangroveWatch - Community Reports ({datetime.now().strftime('%Y-%m-%d %H:%M')})",
    )

    output_path = os.path.join(os.path.dirname(os.path.abspath(__file__)), "mangrove_reports_map.html")
    report_map.save(output_path)

    print(f"\nMap saved to: {output_path}")
    print("\nOpen the file in your browser to view the interactive map!")
    print("=" * 60)

if __name__ == "__main__":
    main()
