import os


def _get_bool_env(name: str, default: bool) -> bool:
	raw = os.environ.get(name)
	if raw is None:
		return default
	return raw.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
	raw = os.environ.get(name)
	if raw is None:
		return default
	try:
		return int(raw)
	except ValueError:
		return default


# Backend REST service
API_BASE_URL = os.environ.get("API_BASE_URL", "http://localhost:8080")
API_TIMEOUT_SECONDS = _get_int_env("API_TIMEOUT_SECONDS", 10)

# Credential store: Redis when a URL is configured, in-memory otherwise
CREDENTIAL_REDIS_URL = os.environ.get("CREDENTIAL_REDIS_URL")
CREDENTIAL_NAMESPACE = os.environ.get("CREDENTIAL_NAMESPACE")

# Token handling. Signature verification is opt-in; the backend stays the authority.
APP_JWT_SECRET = os.environ.get("APP_JWT_SECRET")
APP_JWT_ALGORITHM = os.environ.get("APP_JWT_ALGORITHM", "HS256")
APP_JWT_VERIFY_SIGNATURE = _get_bool_env("APP_JWT_VERIFY_SIGNATURE", False)

# Hours ledger
MIN_SERVICE_DURATION_SECONDS = _get_int_env("MIN_SERVICE_DURATION_SECONDS", 60 * 60)

# Beneficiary fan-out: "fail_fast" or "collect"
FANOUT_FAILURE_POLICY = os.environ.get("FANOUT_FAILURE_POLICY", "fail_fast").strip().lower()

# Observability configuration
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
ENABLE_PROMETHEUS_METRICS = _get_bool_env("ENABLE_PROMETHEUS_METRICS", True)
PROMETHEUS_METRICS_NAMESPACE = os.environ.get("PROMETHEUS_METRICS_NAMESPACE", "cs_client")
PROMETHEUS_METRICS_SUBSYSTEM = os.environ.get("PROMETHEUS_METRICS_SUBSYSTEM", "session")
