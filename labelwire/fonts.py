# -*- coding: utf-8 -*-
"""
Find font files installed on this machine.

The font directories of the running platform are walked recursively and every
TrueType/OpenType face is read once with FreeType-py to learn its names.
"""
import logging
import os
import platform

logger = logging.getLogger(__name__)

FONT_EXTENSIONS = ('.ttf', '.otf')


def system_font_dirs():
    """Common font directories for the current OS"""
    home = os.path.expanduser('~')
    system = platform.system()
    if system == 'Windows':
        windir = os.environ.get('WINDIR', 'C:\\Windows')
        return [
            os.path.join(windir, 'Fonts'),
            os.path.join(os.environ.get('LOCALAPPDATA', ''), 'Microsoft', 'Windows', 'Fonts'),
        ]
    if system == 'Darwin':
        return [
            '/System/Library/Fonts',
            '/System/Library/Fonts/Supplemental',
            '/Library/Fonts',
            os.path.join(home, 'Library/Fonts'),
        ]
    if system in ('Linux', 'FreeBSD', 'OpenBSD', 'NetBSD'):
        return [
            '/usr/share/fonts',
            '/usr/local/share/fonts',
            os.path.join(home, '.fonts'),
            os.path.join(home, '.local/share/fonts'),
        ]
    logger.warning("unknown OS %s, no font directories known", system)
    return []


class FontEntry:
    """One installed face: its names and where it lives"""
    __slots__ = ('family', 'style', 'path')

    def __init__(self, family, style, path):
        self.family = family
        self.style = style
        self.path = path

    @property
    def display_name(self):
        return '{0} {1}'.format(self.family, self.style)

    def __repr__(self):
        return '<FontEntry {0!r} {1}>'.format(self.display_name, self.path)


def _decode(name):
    if isinstance(name, bytes):
        return name.decode('utf-8', 'replace')
    return name or ''


class SystemFontResolver:
    """
    Resolve a FontSpec to a font file by family and style name.

    Directories are scanned lazily on the first lookup. If the family of the
    FontSpec is already a path to a file, that path is returned unchanged.

    :param dirs: (optional) directories to scan instead of the system ones
    """
    _dirs = None
    _entries = None

    def __init__(self, dirs=None):
        self._dirs = list(dirs) if dirs is not None else system_font_dirs()
        self._entries = None

    def scan(self):
        """Read every font file below the directories, deduplicated by display name"""
        import freetype

        entries = {}
        for top in self._dirs:
            if not os.path.isdir(top):
                continue
            logger.debug("scanning fonts in %s", top)
            for root, _, files in os.walk(top):
                for name in sorted(files):
                    if not name.lower().endswith(FONT_EXTENSIONS):
                        continue
                    path = os.path.join(root, name)
                    try:
                        face = freetype.Face(path)
                    except (freetype.FT_Exception, OSError) as e:
                        logger.debug("skipping %s: %s", path, e)
                        continue
                    family = _decode(face.family_name) or os.path.splitext(name)[0]
                    entry = FontEntry(family, _decode(face.style_name), path)
                    entries.setdefault(entry.display_name, entry)
        self._entries = sorted(entries.values(), key=lambda e: e.display_name)
        logger.debug("found %d fonts", len(self._entries))
        return self._entries

    def available(self):
        """Display names of every font found, sorted alphabetically"""
        if self._entries is None:
            self.scan()
        return [e.display_name for e in self._entries]

    def find(self, family, style='Regular'):
        if self._entries is None:
            self.scan()
        family = family.lower()
        same_family = [e for e in self._entries if e.family.lower() == family]
        for e in same_family:
            if e.style.lower() == (style or '').lower():
                return e.path
        # 'Regular' is called 'Book' or 'Roman' by some foundries
        if (style or 'regular').lower() in ('regular', 'book', 'roman', 'normal'):
            for e in same_family:
                if e.style.lower() in ('regular', 'book', 'roman', 'normal'):
                    return e.path
        return None

    def __call__(self, font):
        if os.path.isfile(font.family):
            return font.family
        return self.find(font.family, font.style)
