"""Lockbox Meta information.
   Lockbox keeps vault-item secrets encrypted under a master passphrase
   that never leaves the client session.
"""
__title__ = 'lockbox'
__description__ = (
   'Zero-knowledge vault engine: client-side envelope encryption '
   'and session lifecycle for password managers.'
)
__version__ = '0.3.0'
__license__ = 'Apache-2.0'
