import os
from dotenv import load_dotenv

# Load Environment Variables from project root .env
env_path = os.path.join(os.path.dirname(__file__), "../../.env")
load_dotenv(env_path)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    return float(raw) if raw not in (None, "") else default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    return int(raw) if raw not in (None, "") else default


class Settings:
    # ═══════════════════════════════════════════════════════════════════
    # LP ROTATOR CONFIGURATION
    # ═══════════════════════════════════════════════════════════════════

    # --- Console ---
    SILENT_MODE = os.getenv("SILENT_MODE", "false").lower() == "true"
    LOG_DIR = os.path.abspath(
        os.getenv("LOG_DIR", os.path.join(os.path.dirname(__file__), "../../logs"))
    )

    # --- Chain / Wallet ---
    RPC_URL = os.getenv("SOLANA_RPC_URL", "https://api.mainnet-beta.solana.com")
    WALLET_PUBLIC_KEY = os.getenv("SOLANA_PUBLIC_KEY", "")
    WALLET_PRIVATE_KEY = os.getenv("SOLANA_PRIVATE_KEY", "")
    RPC_TIMEOUT_S = _env_float("RPC_TIMEOUT_S", 15.0)

    # --- External APIs ---
    DEFILLAMA_POOLS_URL = os.getenv("DEFILLAMA_POOLS_URL", "https://yields.llama.fi/pools")
    JUPITER_QUOTE_URL = os.getenv("JUPITER_QUOTE_URL", "https://quote-api.jup.ag/v6/quote")
    JUPITER_SWAP_URL = os.getenv("JUPITER_SWAP_URL", "https://quote-api.jup.ag/v6/swap")
    RAYDIUM_API_URL = os.getenv("RAYDIUM_API_URL", "https://api-v3.raydium.io")

    # --- Scheduler ---
    SCAN_INTERVAL_SECONDS = _env_int("SCAN_INTERVAL_SECONDS", 300)
    SCAN_JITTER_SECONDS = _env_int("SCAN_JITTER_SECONDS", 30)

    # --- Pool Selection ---
    TARGET_PROJECT = os.getenv("TARGET_PROJECT", "raydium-amm")
    TARGET_CHAIN = os.getenv("TARGET_CHAIN", "Solana")
    NATIVE_SYMBOLS = ("SOL", "WSOL")
    MIN_TVL_USD = _env_float("MIN_TVL_USD", 25_000_000)
    MIN_VOLUME_7D_USD = _env_float("MIN_VOLUME_7D_USD", 1_000_000)
    APY_IMPROVEMENT_THRESHOLD = _env_float("APY_IMPROVEMENT_THRESHOLD", 0.5)
    LP_REGISTRY_TTL_S = 300

    # --- Migration ---
    MIN_SOL_RESERVE = _env_float("MIN_SOL_RESERVE", 0.05)  # SOL kept for fees
    WITHDRAW_SLIPPAGE_PCT = _env_float("WITHDRAW_SLIPPAGE_PCT", 1.0)
    DEPOSIT_SLIPPAGE_PCT = _env_float("DEPOSIT_SLIPPAGE_PCT", 1.0)
    DEPOSIT_RETRY_SLIPPAGE_PCT = _env_float("DEPOSIT_RETRY_SLIPPAGE_PCT", 10.0)
    DEPOSIT_RETRY_SOL_FRACTION = 0.9
    COUNTER_BUFFER_PCT = 110  # max counter side = required * 110%
    SWAP_SLIPPAGE_BPS = _env_int("SWAP_SLIPPAGE_BPS", 50)
    STEP_DELAY_MIN_S = 2.0
    STEP_DELAY_MAX_S = 7.0

    # --- Transaction Submission ---
    MAX_SEND_ATTEMPTS = 3
    RATE_LIMIT_BACKOFF_S = 10.0
    CONFIRM_POLL_ATTEMPTS = 30
    CONFIRM_POLL_INTERVAL_S = 1.0
    PRIORITY_FEE_MICRO_LAMPORTS = _env_int("PRIORITY_FEE_MICRO_LAMPORTS", 100_000)
    COMPUTE_UNIT_LIMIT = _env_int("COMPUTE_UNIT_LIMIT", 400_000)

    # --- Well-known addresses ---
    WSOL_MINT = "So11111111111111111111111111111111111111112"
    RAYDIUM_AMM_V4_PROGRAM = "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8"
