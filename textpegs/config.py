# Copyright 2017 Matt Chaput. All rights reserved.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
#    1. Redistributions of source code must retain the above copyright notice,
#       this list of conditions and the following disclaimer.
#
#    2. Redistributions in binary form must reproduce the above copyright
#       notice, this list of conditions and the following disclaimer in the
#       documentation and/or other materials provided with the distribution.
#
# THIS SOFTWARE IS PROVIDED BY MATT CHAPUT ``AS IS'' AND ANY EXPRESS OR
# IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE IMPLIED WARRANTIES OF
# MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE DISCLAIMED. IN NO
# EVENT SHALL MATT CHAPUT OR CONTRIBUTORS BE LIABLE FOR ANY DIRECT, INDIRECT,
# INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT
# LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA,
# OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF
# LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING
# NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE,
# EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
#
# The views and conclusions contained in the software and documentation are
# those of the authors and should not be interpreted as representing official
# policies, either expressed or implied, of Matt Chaput.

import os.path
import sys

from flask.config import Config


def expandpath(path, root_path="."):
    path = path.replace("${PYTHON_VERSION}", "%s.%s" %
                        (sys.version_info.major, sys.version_info.minor))
    path = os.path.expanduser(os.path.expandvars(path))
    return os.path.join(root_path, path)


def read_config(cfg=None, config_file=None, root_path=".", config_obj=None):
    cfg = cfg or Config(root_path)
    cfg.from_object(config_obj or DefaultConfig)

    if config_file:
        config_file = expandpath(config_file, root_path=root_path)
        cfg.from_pyfile(config_file)

    cfg.from_envvar("TEXTPEGS_CONFIG", silent=True)

    return cfg


_config = None


def get_config():
    """
    Returns the configuration the library uses when a function isn't passed
    one explicitly, reading it the first time this is called.
    """

    global _config
    if _config is None:
        _config = read_config()
    return _config


def set_config(cfg):
    global _config
    _config = cfg


class DefaultConfig(object):
    DEBUG = False

    # Logging for the command line tool
    LOGLEVEL = "WARNING"
    LOGFILE = None

    # Number of capture slots in a capture table. Compiling a pattern with more
    # captures than this is an error.
    MAX_SUBPATTERNS = 20

    # References to rules whose bodies are smaller than this are replaced with
    # the body when compiling. Set to 0 to never inline.
    INLINE_THRESHOLD = 5

    # The "file name" used in error messages for patterns compiled from strings
    PATTERN_FILENAME = "pattern"

    # Maximum number of compiled patterns to keep in the compile cache
    CACHE_SIZE = 256

    # The pygments style to use when highlighting grammars
    PYGMENTS_STYLE = "default"
