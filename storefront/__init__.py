"""
Storefront Core Package

This package contains the storefront components:
- config: Settings from environment variables
- db: Database clients (Supabase + Upstash Redis)
- cart: Session cart store and snapshot persistence
- checkout: Catalog validation and Stripe checkout sessions
- orders: Fulfilment of paid checkouts
- routers: FastAPI endpoints

Note: Subpackages are imported explicitly; nothing is loaded here so
serverless cold starts only pay for what a route uses.
"""
