import os, json, hashlib, uuid, logging
from typing import Dict, Any, Optional
from datetime import datetime, timezone

from . import config

logger = logging.getLogger(__name__)


def _sanitize(s: str) -> str:
    return "".join(c for c in (s or "unknown") if c.isalnum() or c in ("-", "_")) or "unknown"


class CalculationTraceLogger:
    """
    Write-once JSON records of credit calculations.
    - Every envelope carries a SHA-256 checksum of its own contents
    - Files are created with O_EXCL and never overwritten
    """
    def __init__(self, base_dir: Optional[str] = None):
        self.base_dir = base_dir or config.TRACE_DIR
        os.makedirs(self.base_dir, exist_ok=True)

    def _checksum(self, payload: dict) -> str:
        data = json.dumps(payload, sort_keys=True, ensure_ascii=False, default=str).encode("utf-8")
        return hashlib.sha256(data).hexdigest()

    def _unique_path(self, subject: str, filename: Optional[str] = None) -> str:
        if filename:
            return os.path.join(self.base_dir, filename)
        ts = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
        uid = uuid.uuid4().hex[:8]
        fname = f"calc_{_sanitize(subject)}_{ts}_{uid}.json"
        return os.path.join(self.base_dir, fname)

    def write_trace(self, envelope: Dict[str, Any], filename: Optional[str] = None) -> str:
        # Round-trip through JSON so the stored checksum matches what verify() reads back.
        envelope = json.loads(json.dumps(envelope, ensure_ascii=False, default=str))
        envelope["checksum_sha256"] = self._checksum(envelope)

        for _ in range(5):
            path = self._unique_path(envelope.get("subject", "unknown"), filename=filename)
            try:
                fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
            except FileExistsError:
                if filename:
                    raise
                continue
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(envelope, f, ensure_ascii=False, indent=2)
            except OSError:
                os.unlink(path)
                raise
            logger.info("wrote calculation trace %s", path)
            return path

        raise FileExistsError("Trace file collision after multiple attempts (WORM).")

    def verify(self, path: str) -> bool:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        saved = data.pop("checksum_sha256", "")
        return saved == self._checksum(data)

    def write_study_trace(self, study, business_id: str, additional_data: Optional[Dict[str, Any]] = None) -> str:
        """
        Record a completed credit study.

        Args:
            study: CreditStudy returned by run_credit_study
            business_id: Business the study was run for
            additional_data: Extra top-level fields (e.g. reviewer, ruleset version)

        Returns:
            Path to the written trace file
        """
        envelope = {
            "type": "credit_study",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "subject": f"{business_id}_{study.year}",
            "business_id": business_id,
            "year": study.year,
            "total_qres": study.total_qres,
            "federal": study.federal.model_dump(mode="json"),
            "state": study.state.model_dump(mode="json"),
            "compliance": {
                "score": study.compliance.compliance_score,
                "risk_level": study.compliance.risk_level.value,
            },
        }

        if additional_data:
            envelope.update(additional_data)

        return self.write_trace(envelope)
