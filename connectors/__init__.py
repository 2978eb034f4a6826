"""
connectors — backend connectivity probes and credential sealing.

Provides a generic connector framework that handles:
  • AES-256-GCM sealing of connection strings before they are sent
  • One bounded HTTP probe per check against a verification proxy
  • Downgrading every probe failure to a disconnected outcome

Each backend (ResilientDB, MongoDB, …) is a subclass of BaseConnector.
"""
