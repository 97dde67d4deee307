# Namespace for pipeline steps
from .fetch_stargazers import FetchStargazers, PersistNewStargazers  # noqa: F401
from .enrich_stargazers import LoadPendingStargazers, EnrichAndPersistStargazers  # noqa: F401
