"""OAuth Vault Meta information.
   OAuth Vault keeps provider credentials encrypted at rest and manages
   the delegated access/refresh token pair bound to a user session.
"""
__title__ = 'oauth_vault'
__description__ = (
   'Encrypted provider credential vault and OAuth session '
   'token lifecycle manager.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2023 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
