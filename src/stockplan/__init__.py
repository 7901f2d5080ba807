"""StockPlan backend.

Personal stock-tracking backend. This package holds the application
layer (authentication orchestration, background token cleanup, mail
delivery) and its presentation adapters (FastAPI, CLI). Generic auth
infrastructure lives in ``stockplan_auth``; configuration in
``stockplan_config``.
"""
