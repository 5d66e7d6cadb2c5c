"""Domain rules for each resource; routers stay thin."""
