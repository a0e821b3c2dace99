# scripts/reset_salaries.py
# Replace all salaries with seed salaries for up to five active workers (development only).
# python -m scripts.reset_salaries
import sys

from scripts.maintenance import main

if __name__ == "__main__":
    sys.exit(main(["run", "reset_salaries"]))
