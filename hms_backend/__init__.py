"""
Backend archivio visite (professionisti, clienti, visite, identità di sessione).

Struttura:
- config.py   : variabili d'ambiente (.env)
- db.py       : engine e sessioni SQLAlchemy
- models.py   : modelli ORM e enum stato visita
- ids.py      : allocazione id interi per collezione
- seed.py     : dati iniziali (solo su collezioni vuote)
- services.py : operazioni di dominio (CRUD, ciclo di vita visita)
- api_main.py : API REST (FastAPI)
- mirror.py   : copia in memoria lato client, letture sincrone
- cli.py      : comandi operatore
"""
