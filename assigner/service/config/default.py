LOG_FILE = "assigner.log"
ENV = "production"
REDIS_URL = "redis://localhost:6379/0"

# A datasource object to use instead of Redis, e.g. an InMemoryDatasource.
DATASOURCE = None
