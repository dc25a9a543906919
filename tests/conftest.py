"""Test harness setup."""

import os

# Use litellm's bundled model cost map instead of fetching it over the network
# at import time; the offline fetch's background retry can deadlock the import.
os.environ.setdefault("LITELLM_LOCAL_MODEL_COST_MAP", "True")
