import json
import logging
import os
import threading
import uuid

import bcrypt

from config import settings

logger = logging.getLogger(__name__)


class AccountExists(Exception):
    pass


class AccountDB:
    """Kiosk operator accounts in a JSON file, keyed by email"""

    def __init__(self, db_path=settings.ACCOUNT_DB_PATH):
        self.db_path = db_path
        self.last_mtime = 0
        self._lock = threading.Lock()
        self.data = self.load()

    def load(self):
        if os.path.exists(self.db_path):
            self.last_mtime = os.path.getmtime(self.db_path)
            with open(self.db_path, 'r', encoding='utf-8') as f:
                return json.load(f)
        return {}

    def save(self):
        directory = os.path.dirname(self.db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp_path = self.db_path + '.tmp'
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(self.data, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, self.db_path)
        self.last_mtime = os.path.getmtime(self.db_path)

    def _refresh(self):
        # Pick up accounts written by another process
        if os.path.exists(self.db_path):
            current_mtime = os.path.getmtime(self.db_path)
            if current_mtime > self.last_mtime:
                logger.info("Account file changed, reloading")
                self.data = self.load()

    def add_account(self, business_unique_id, username, email, password):
        with self._lock:
            self._refresh()
            if email in self.data:
                raise AccountExists(email)

            password_hash = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds=10))
            account = {
                "id": uuid.uuid4().hex,
                "business_unique_id": business_unique_id,
                "username": username,
                "email": email,
                "password_hash": password_hash.decode('utf-8'),
            }
            self.data[email] = account
            self.save()
            return account

    def get_by_email(self, email):
        with self._lock:
            self._refresh()
            return self.data.get(email)

    @staticmethod
    def verify_password(account, password):
        return bcrypt.checkpw(password.encode('utf-8'), account["password_hash"].encode('utf-8'))
