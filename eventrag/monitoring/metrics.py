"""Prometheus metrics for monitoring."""

from prometheus_client import Counter, Histogram

query_counter = Counter("rag_queries_total",
                        "Total number of questions processed")
query_errors_total = Counter(
    "rag_query_errors_total", "Total number of question errors", ["code"])
query_latency_seconds = Histogram(
    "rag_query_latency_seconds", "Question latency in seconds", buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0])
retrieved_chunks = Histogram(
    "rag_query_scope_chunks", "Chunks fetched per question", buckets=[0, 10, 100, 1000, 10000])

ingests_total = Counter("rag_ingests_total",
                        "Total number of documents ingested")
ingest_errors_total = Counter(
    "rag_ingest_errors_total", "Total number of ingest errors", ["code"])
chunks_ingested_total = Counter(
    "rag_chunks_ingested_total", "Total number of chunks stored")
ingest_duration_seconds = Histogram(
    "rag_ingest_duration_seconds", "Ingest processing duration", buckets=[0.5, 1.0, 5.0, 10.0, 30.0, 60.0])

malformed_chunks_total = Counter(
    "rag_malformed_chunks_total", "Stored chunks skipped because they failed validation")
