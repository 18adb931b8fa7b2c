"""Analysis stages, case store and orchestration."""
