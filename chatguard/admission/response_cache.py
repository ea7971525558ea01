"""Static response cache of operator-authored answers.

Lookups normalize the query (lowercase + trim), try an exact key match, then
fall back to substring containment in either direction. Short queries that
are contained in many keys resolve to the first key in table order.
"""

from loguru import logger

CACHED_RESPONSES: dict[str, str] = {
    "tell me about luis": (
        "Luis Gimenez is a Software Engineer II (SE II) on the Enterprise Payments Platform team at The Home Depot "
        "— a team of 100+ engineers operating 50+ microservices processing ~185K transactions/hour.\n\n"
        "He did not build the platform. He works within it. His specific contributions include:\n"
        "- Built Grafana observability dashboards adopted by VP-level leadership (his signature work)\n"
        "- Contributed production code to Card Broker (credit/debit routing) for ~2 years\n"
        "- Owns interrupt rotation — production reliability at 2 AM\n"
        "- Advocated for and implemented PII masking for PCI DSS compliance\n"
        "- GCP Professional Cloud Architect certified\n\n"
        "For details, visit /about or /work."
    ),
    "what gcp services has luis used?": (
        "Luis is GCP Professional Cloud Architect certified and works within a GKE-based payments platform.\n\n"
        "Services he has hands-on experience with:\n"
        "Compute: GKE (daily), Cloud Run (portfolio)\n"
        "Data: Pub/Sub (CDC changefeeds), BigQuery, Cloud SQL, CockroachDB\n"
        "Security: Cloud KMS (Tink encryption), Secret Manager, Sensitive Data Protection\n"
        "DevOps: Cloud Build, Artifact Registry, Spinnaker\n"
        "IaC: CDK8s, Terraform\n\n"
        "He pursued the certification independently and it directly informed the team's PCF-to-GCP migration."
    ),
    "what's luis's tech stack?": (
        "Languages: Go (primary at Home Depot), TypeScript (portfolio), Java (legacy services)\n\n"
        "Observability: Prometheus/PromQL, Grafana, Loki, Tempo, Pyroscope, OpenTelemetry\n"
        "Cloud: GCP (Professional Architect certified)\n"
        "Data: CockroachDB, PostgreSQL, Redis\n"
        "Infrastructure: CDK8s, Terraform, Docker, Kubernetes (GKE)\n\n"
        "Domains: Payment Systems, Observability, Production Operations, Cloud Migration"
    ),
    "is luis open to remote work?": (
        "Yes. Luis is based in Florida and is seeking Senior, Staff, SRE, or Architect roles.\n\n"
        "Open to remote, hybrid, or relocation — particularly Atlanta, Austin, NYC, SF/Bay Area, Seattle, or Denver.\n\n"
        "US work authorized. No sponsorship required."
    ),
    "what certifications does luis have?": (
        "Luis holds:\n\n"
        "- Google Cloud Professional Cloud Architect (Active) — skipped associate, went straight for professional\n"
        "- CompTIA Project+\n"
        "- ITIL Foundation\n\n"
        "The GCP cert was self-driven and has repeatedly opened doors at Home Depot."
    ),
}


def normalize_query(query: str) -> str:
    return query.lower().strip()


class ResponseCache:
    def __init__(self, entries: dict[str, str] | None = None) -> None:
        source = CACHED_RESPONSES if entries is None else entries
        self._entries = {normalize_query(key): value for key, value in source.items()}

    def lookup(self, query: str) -> str | None:
        """Return an authored answer for ``query`` or None.

        Args:
            query: Raw user query

        Returns:
            Cached answer text, or None on a miss
        """
        normalized = normalize_query(query)
        if not normalized:
            return None

        exact = self._entries.get(normalized)
        if exact is not None:
            return exact

        # TODO: require a minimum query length for containment matches; "luis" alone hits the first entry
        for key, value in self._entries.items():
            if key in normalized or normalized in key:
                logger.debug("Response cache fuzzy hit", key=key)
                return value

        return None

    def __len__(self) -> int:
        return len(self._entries)
