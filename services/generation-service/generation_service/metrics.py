from prometheus_client import Counter, Histogram

TRAINING_PROGRAMS_GENERATED_TOTAL = Counter(
    "training_programs_generated_total",
    "Number of training program generation runs by outcome",
    ["status"],
)

PROGRAM_GENERATION_LLM_CALLS_TOTAL = Counter(
    "program_generation_llm_calls_total",
    "Number of logical structured LLM calls issued by the generation pipeline",
    ["step"],
)

PROGRAM_GENERATION_RETRIES_TOTAL = Counter(
    "program_generation_retries_total",
    "Number of extra LLM attempts caused by invalid or failed responses",
    ["step"],
)

PROGRAM_VALIDATION_FINDINGS_TOTAL = Counter(
    "program_validation_findings_total",
    "Number of Guardian findings by severity",
    ["severity"],
)

PROGRAM_GENERATION_SECONDS = Histogram(
    "program_generation_seconds",
    "Wall-clock duration of training program generation runs",
    buckets=(1, 5, 15, 30, 60, 120, 300, 600),
)
