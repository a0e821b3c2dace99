# scripts/assign_supervisors_to_location.py
# Assign supervisors without a location to the first active location.
# python -m scripts.assign_supervisors_to_location
import sys

from scripts.maintenance import main

if __name__ == "__main__":
    sys.exit(main(["run", "assign_supervisors_to_location"]))
