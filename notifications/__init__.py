"""
Notifications app package for the JETZZ backend.

Transactional emails are queued as `EmailNotification` rows and sent in
small batches by a periodic Celery task, with a bounded number of
retries per message.
"""
