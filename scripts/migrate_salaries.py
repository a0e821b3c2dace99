# scripts/migrate_salaries.py
# Copy supervisor, secretary and operator salaries onto their user records.
# python -m scripts.migrate_salaries
import sys

from scripts.maintenance import main

if __name__ == "__main__":
    sys.exit(main(["run", "migrate_salaries_to_users"]))
