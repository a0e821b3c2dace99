# scripts/activate_users.py
# Set is_active on every user that is not active yet.
# python -m scripts.activate_users
import sys

from scripts.maintenance import main

if __name__ == "__main__":
    sys.exit(main(["run", "activate_users"]))
