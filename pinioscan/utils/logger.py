import os
import re
import sys

from loguru import logger

# 32-byte hex secrets (deployer keys) and bearer-style API keys
_SECRET_PATTERNS = (
    re.compile(r"\b(0x)?[0-9a-fA-F]{64}\b(?![0-9a-fA-F])"),
    re.compile(r"(Bearer\s+)[\w\-.]+"),
    re.compile(r"(apikey=)[^&\s]+", re.IGNORECASE),
)


def redact(message: str, secrets: tuple[str, ...] = ()) -> str:
    """Mask anything shaped like a private key or API credential.

    Transaction hashes are also 32-byte hex, so only un-prefixed runs and
    values after ``Bearer``/``apikey=`` are masked by shape; ``0x`` keys are
    caught through ``secrets``, the configured values themselves.
    """
    for secret in secrets:
        message = re.sub(re.escape(secret), "***", message, flags=re.IGNORECASE)
    message = _SECRET_PATTERNS[0].sub(lambda m: m.group(0) if m.group(1) else "***", message)
    message = _SECRET_PATTERNS[1].sub(r"\1***", message)
    return _SECRET_PATTERNS[2].sub(r"\1***", message)


_secrets: tuple[str, ...] = ()


def _patch(record: dict) -> None:
    record["message"] = redact(record["message"], _secrets)


def _secret_variants(values: tuple[str, ...]) -> tuple[str, ...]:
    variants: set[str] = set()
    for value in values:
        value = value.strip()
        if len(value) < 8:
            continue
        variants.add(value)
        if value[:2].lower() == "0x":
            variants.add(value[2:])
    # Longest first so a bare key never leaves a dangling "0x"
    return tuple(sorted(variants, key=len, reverse=True))


def setup_logger(
    *,
    json_logs: bool = False,
    level: str = "INFO",
    log_dir: str = "logs",
    secrets: tuple[str, ...] = (),
) -> None:
    """Configure loguru for the scanner service.

    Console level from LOG_LEVEL env (default: ``level``); the daily file sink
    under ``log_dir`` keeps DEBUG so degraded evidence sources can be traced.
    """
    console_level = os.getenv("LOG_LEVEL", level).upper()
    global _secrets
    _secrets = _secret_variants(secrets)
    logger.remove()
    logger.configure(patcher=_patch)

    if json_logs:
        logger.add(sys.stdout, serialize=True, level=console_level)
    else:
        logger.add(
            sys.stdout,
            format=(
                "<green>{time:HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
                "<level>{message}</level>"
            ),
            level=console_level,
            colorize=True,
        )

    if log_dir:
        logger.add(
            f"{log_dir}/pinioscan_{{time:YYYY-MM-DD}}.log",
            rotation="20 MB",
            retention="7 days",
            compression="gz",
            level="DEBUG",
            serialize=json_logs,
        )
