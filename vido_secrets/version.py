"""Vido Secrets Meta information.
   Vido Secrets keeps third-party API keys and tokens encrypted at rest.
"""
__title__ = 'vido_secrets'
__description__ = (
   'Vido Secrets keeps third-party API keys and tokens encrypted '
   'at rest and out of the logs.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2024 Vido Authors'
__author__ = 'Vido Authors'
__author_email__ = 'dev@vido.local'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/vido/vido-secrets'
