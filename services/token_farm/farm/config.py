import os

DATABASE_URL = os.getenv("DATABASE_URL")

LOG_LEVEL = os.getenv("LOG_LEVEL", "info").lower()

# Deployer / owner of the farm. Falls back to the address derived from "owner".
FARM_OWNER = os.getenv("FARM_OWNER", "")

TOKEN_DECIMALS = int(os.getenv("TOKEN_DECIMALS", "18"))

# --- Reward rate ---
# reward per block = staking_balance * NUMERATOR // DENOMINATOR
REWARD_RATE_NUMERATOR = int(os.getenv("REWARD_RATE_NUMERATOR", "1"))
REWARD_RATE_DENOMINATOR = int(os.getenv("REWARD_RATE_DENOMINATOR", "100"))

if REWARD_RATE_DENOMINATOR <= 0:
    raise RuntimeError(f"Invalid REWARD_RATE_DENOMINATOR={REWARD_RATE_DENOMINATOR}")
if REWARD_RATE_NUMERATOR < 0:
    raise RuntimeError(f"Invalid REWARD_RATE_NUMERATOR={REWARD_RATE_NUMERATOR}")
if TOKEN_DECIMALS < 0:
    raise RuntimeError(f"Invalid TOKEN_DECIMALS={TOKEN_DECIMALS}")
