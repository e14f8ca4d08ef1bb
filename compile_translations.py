#!/usr/bin/env python
"""Compile PO files to MO files"""
import os
from babel.messages import pofile, mofile

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
TRANSLATIONS_DIR = os.path.join(BASE_DIR, 'translations')


def compile_messages(locale='pl', source_dir=TRANSLATIONS_DIR, target_dir=None):
    """Compile one locale. ``target_dir`` defaults to ``source_dir``."""
    target_dir = target_dir or source_dir
    po_file = os.path.join(source_dir, locale, 'LC_MESSAGES', 'messages.po')
    mo_dir = os.path.join(target_dir, locale, 'LC_MESSAGES')
    mo_file = os.path.join(mo_dir, 'messages.mo')

    print(f"Reading {po_file}...")
    with open(po_file, 'r', encoding='utf-8') as f:
        catalog = pofile.read_po(f, locale=locale)

    os.makedirs(mo_dir, exist_ok=True)
    print(f"Writing {mo_file}...")
    with open(mo_file, 'wb') as f:
        mofile.write_mo(f, catalog)

    return mo_file


def compile_all(source_dir=TRANSLATIONS_DIR, target_dir=None):
    compiled = []
    for locale in sorted(os.listdir(source_dir)):
        if os.path.exists(os.path.join(source_dir, locale, 'LC_MESSAGES', 'messages.po')):
            compiled.append(compile_messages(locale, source_dir, target_dir))
    return compiled


if __name__ == '__main__':
    compile_all()
    print("Done!")
