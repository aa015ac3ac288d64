"""
Repository layer for data access.

Repositories encapsulate SQLAlchemy queries for users and todos. Todo queries
assume the provided AsyncSession is inside a scoped transaction with the caller
identity bound (see rls_api.db.session.user_transaction).
"""
