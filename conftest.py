# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

# rootdir-conftest: makes top-level modules and packages importable from tests w/o installation
