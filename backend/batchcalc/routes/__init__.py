from importlib import import_module

modules = [
    'health',
    'ingredients',
    'formulations',
    'batches',
]

for m in modules:
    import_module(f'.{m}', __name__)

__all__ = modules
