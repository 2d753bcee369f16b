"""Tenant Session Meta information.
   Tenant Session keeps a single credential session record in a secret store.
"""
__title__ = 'tenant_session'
__description__ = (
   'Tenant Session reads, merges and persists a single credential '
   'session record inside a protected secret store.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2023 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/phenobarbital/tenant-session'
