"""
Extensions
==========
Inisialisasi ekstensi Flask yang digunakan secara global
(ORM untuk identitas & audit, migrasi skema).
"""

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

db = SQLAlchemy()
migrate = Migrate()
