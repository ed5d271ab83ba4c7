"""Request-scoped diagnostics for repeated ORM model loads.

The collector lives for one HTTP request: the middleware binds it, the SQLAlchemy
load listener feeds it, and its teardown writes a plain-text report of every
(model, id) pair that was loaded more than once.
"""
