"""
Infrastructure layer: upstream service clients and caches.

- identity: PubChem compound lookup
- repository: NRC Digital Repository search, detail and spectra
- cache: in-memory identity cache
- http: shared httpx base client
"""
