"""
Client-side state layer.

Components:
- entity_store.py: EntityStore, the single owner of folders/tasks/tags,
  selection and loading state
- projection.py: derived read model (visible tasks, list title, names)
- validation.py: caller-side field checks producing ValidationError
"""
