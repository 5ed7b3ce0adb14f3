"""Business logic over repositories; raises typed AppErrors."""
