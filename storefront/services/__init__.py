"""Services: catalog, payments, money helpers and the Supabase repositories."""
