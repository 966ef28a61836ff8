# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


from copy import copy
import logging
import sys


class Bcolors:
    RESET_ALL = '\033[0m'
    BOLD = '\033[1m'
    RED = '\033[31m'
    GREEN = '\033[32m'
    YELLOW = '\033[33m'
    BLUE = '\033[34m'


def _coloured(*colours: str):
    prefix = ''.join(colours)
    return lambda level_name: f'{prefix}{level_name}{Bcolors.RESET_ALL}'


class CCFormatter(logging.Formatter):
    '''
    formatter adding a (on terminals: coloured) `levelprefix` attribute to log-records
    '''
    level_colors = {
        logging.DEBUG: _coloured(Bcolors.BOLD, Bcolors.BLUE),
        logging.INFO: _coloured(Bcolors.BOLD, Bcolors.GREEN),
        logging.WARNING: _coloured(Bcolors.BOLD, Bcolors.YELLOW),
        logging.ERROR: _coloured(Bcolors.BOLD, Bcolors.RED),
    }

    def __init__(self, *args, colourise: bool | None=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.colourise = colourise

    def _should_colourise(self) -> bool:
        if self.colourise is not None:
            return self.colourise
        return sys.stdout.isatty()

    def color_level_name(self, level_name: str, level_number: int) -> str:
        func = self.level_colors.get(level_number, str)
        return func(level_name)

    def formatMessage(self, record):
        record_copy = copy(record)
        levelname = record_copy.levelname
        if self._should_colourise():
            levelname = self.color_level_name(levelname, record_copy.levelno)
        record_copy.__dict__['levelprefix'] = levelname
        return super().formatMessage(record_copy)


# loggers of libraries we use that are too verbose on INFO
_noisy_loggers = (
    'git',
    'github3',
    'kubernetes',
    'urllib3',
)


def configure_default_logging(
    stdout_level=None,
    force=True,
    print_thread_id=False,
    custom_format_string: str='',
):
    if not stdout_level:
        stdout_level = logging.INFO

    # make sure to have a clean root logger (in case setup is called multiple times)
    if force:
        for h in list(logging.root.handlers):
            logging.root.removeHandler(h)
            h.close()

    sh = logging.StreamHandler()
    sh.setLevel(stdout_level)
    sh.setFormatter(CCFormatter(
        fmt=custom_format_string or default_fmt_string(print_thread_id=print_thread_id),
    ))

    logging.root.addHandler(hdlr=sh)
    logging.root.setLevel(level=stdout_level)

    for name in _noisy_loggers:
        logging.getLogger(name).setLevel(max(stdout_level, logging.WARNING))


def default_fmt_string(print_thread_id: bool=False):
    ptid = print_thread_id
    return f'%(asctime)s [%(levelprefix)s] {"TID:%(thread)d " if ptid else ""}%(name)s: %(message)s'
