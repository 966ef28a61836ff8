# SPDX-FileCopyrightText: 2024 SAP SE or an SAP affiliate company and Gardener contributors
#
# SPDX-License-Identifier: Apache-2.0

'''
adapters exposing GitHub (via github3.py) as issue tracker, user lookup and release store
'''
