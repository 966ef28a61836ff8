# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0


import logging

import ci.log as examinee


def record(level: int=logging.WARNING) -> logging.LogRecord:
    return logging.LogRecord(
        name='changelog.assemble',
        level=level,
        pathname=__file__,
        lineno=1,
        msg='Failed to lookup issue %s',
        args=('42',),
        exc_info=None,
    )


def test_formatter_plain():
    formatter = examinee.CCFormatter(fmt='[%(levelprefix)s] %(name)s: %(message)s', colourise=False)

    assert formatter.format(record()) == '[WARNING] changelog.assemble: Failed to lookup issue 42'


def test_formatter_coloured():
    formatter = examinee.CCFormatter(fmt='%(levelprefix)s', colourise=True)

    formatted = formatter.format(record(logging.ERROR))

    colours = examinee.Bcolors
    assert formatted == f'{colours.BOLD}{colours.RED}ERROR{colours.RESET_ALL}'


def test_configure_default_logging():
    root_handlers = list(logging.root.handlers)
    root_level = logging.root.level

    try:
        examinee.configure_default_logging(stdout_level=logging.DEBUG, force=False)

        assert logging.root.level == logging.DEBUG
        handler, = [h for h in logging.root.handlers if h not in root_handlers]
        assert isinstance(handler.formatter, examinee.CCFormatter)
        # third-party loggers are kept quiet
        assert logging.getLogger('github3').level == logging.WARNING
    finally:
        for h in list(logging.root.handlers):
            if h not in root_handlers:
                logging.root.removeHandler(h)
        logging.root.setLevel(root_level)
