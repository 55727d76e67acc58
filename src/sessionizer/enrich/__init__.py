"""Best-effort project enrichment.

    note counts   one global notebook scan, merged by project name
    git status    per project, up to 10 concurrent git calls
    plan stats    per project, up to 5 concurrent plan directory scans

Results are annotations only; nothing else in the picker depends on them.
"""
