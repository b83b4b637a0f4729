#!/usr/bin/env python3
"""
Unit tests for guestbook core helpers: configuration, log files and the
process-level exception hooks.

Run with:
    python -m pytest tests/
  or
    python -m unittest discover tests/
"""
import json
import logging
import os
import shutil
import sys
import tempfile
import threading
import unittest
from unittest.mock import patch

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import guestbook

CLEAN_ENV = {k: v for k, v in os.environ.items() if not k.startswith('GUESTBOOK_')}


class TmpDirMixin(unittest.TestCase):
    """Creates a fresh temp directory for each test and cd's into it."""

    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self._orig = os.getcwd()
        os.chdir(self.tmp)

    def tearDown(self):
        os.chdir(self._orig)
        shutil.rmtree(self.tmp, ignore_errors=True)

    def _path(self, name: str) -> str:
        return os.path.join(self.tmp, name)

    def _read_text(self, name: str) -> str:
        with open(self._path(name), encoding='utf-8') as f:
            return f.read()


# ===========================================================================
# Configuration
# ===========================================================================

@patch.dict(os.environ, CLEAN_ENV, clear=True)
class TestLoadConfig(TmpDirMixin):

    def _write_config(self, data) -> str:
        path = self._path('config.json')
        with open(path, 'w') as f:
            if isinstance(data, str):
                f.write(data)
            else:
                json.dump(data, f)
        return path

    def test_defaults_without_file(self):
        config = guestbook.load_config(self._path('missing.json'))
        self.assertEqual(config, guestbook.DEFAULT_CONFIG)

    def test_file_overrides_defaults(self):
        path = self._write_config({'port': 8080, 'guests_file': 'book.json'})
        config = guestbook.load_config(path)
        self.assertEqual(config['port'], 8080)
        self.assertEqual(config['guests_file'], 'book.json')
        self.assertEqual(config['host'], '127.0.0.1')

    def test_unknown_keys_ignored(self):
        path = self._write_config({'theme': 'dark'})
        self.assertNotIn('theme', guestbook.load_config(path))

    def test_env_overrides_file(self):
        path = self._write_config({'port': 8080})
        with patch.dict(os.environ, {'GUESTBOOK_PORT': '9090',
                                     'GUESTBOOK_ACCESS_LOG': ''}):
            config = guestbook.load_config(path)
        self.assertEqual(config['port'], 9090)
        self.assertEqual(config['access_log'], '')

    def test_corrupt_file_falls_back_to_defaults(self):
        path = self._write_config('{not json')
        self.assertEqual(guestbook.load_config(path), guestbook.DEFAULT_CONFIG)

    def test_non_object_file_ignored(self):
        path = self._write_config([1, 2, 3])
        self.assertEqual(guestbook.load_config(path), guestbook.DEFAULT_CONFIG)

    def test_invalid_port_raises(self):
        path = self._write_config({'port': 'eighty'})
        with self.assertRaises(ValueError):
            guestbook.load_config(path)


# ===========================================================================
# Log files
# ===========================================================================

class TestLogFiles(TmpDirMixin):

    def tearDown(self):
        guestbook.configure_log_files({})
        super().tearDown()

    def test_access_line_format(self):
        guestbook.configure_log_files({'access_log': self._path('access.log'),
                                       'error_log': self._path('errors.log')})
        guestbook.log_access('10.0.0.1', '/list', 200)
        self.assertIn('] IP: 10.0.0.1 | Path: /list | Status: 200',
                      self._read_text('access.log'))

    def test_access_log_disabled_with_empty_path(self):
        guestbook.configure_log_files({'access_log': '', 'error_log': ''})
        guestbook.log_access('10.0.0.1', '/', 200)
        self.assertEqual(os.listdir(self.tmp), [])

    def test_reconfigure_replaces_file(self):
        guestbook.configure_log_files({'access_log': self._path('a.log')})
        guestbook.configure_log_files({'access_log': self._path('b.log')})
        guestbook.log_access('10.0.0.1', '/', 200)
        self.assertEqual(self._read_text('a.log'), '')
        self.assertIn('Path: /', self._read_text('b.log'))

    def test_unopenable_file_is_not_fatal(self):
        handler = guestbook.attach_file_handler(
            logging.getLogger(guestbook.ACCESS_LOGGER),
            self._path('no/such/dir/access.log'))
        self.assertIsNone(handler)
        guestbook.log_access('10.0.0.1', '/', 200)


# ===========================================================================
# Exception hooks
# ===========================================================================

class TestExceptionHooks(TmpDirMixin):

    def setUp(self):
        super().setUp()
        self._saved = (sys.excepthook, threading.excepthook)
        guestbook.configure_log_files({'error_log': self._path('errors.log')})
        guestbook.install_exception_hooks()

    def tearDown(self):
        sys.excepthook, threading.excepthook = self._saved
        guestbook.configure_log_files({})
        super().tearDown()

    def test_main_thread_exception_logged(self):
        try:
            raise RuntimeError('kaboom')
        except RuntimeError:
            sys.excepthook(*sys.exc_info())
        text = self._read_text('errors.log')
        self.assertIn('UNCAUGHT EXCEPTION: kaboom', text)
        self.assertIn('Traceback', text)

    def test_worker_thread_exception_logged_and_process_continues(self):
        def boom():
            raise ValueError('worker died')

        t = threading.Thread(target=boom, name='worker-1')
        t.start()
        t.join()
        self.assertIn('UNCAUGHT EXCEPTION in thread worker-1: worker died',
                      self._read_text('errors.log'))

    def test_keyboard_interrupt_uses_default_hook(self):
        with patch.object(sys, '__excepthook__') as default:
            sys.excepthook(KeyboardInterrupt, KeyboardInterrupt(), None)
        default.assert_called_once()
        self.assertEqual(self._read_text('errors.log'), '')


if __name__ == '__main__':
    unittest.main()
