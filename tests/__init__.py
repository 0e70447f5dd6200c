# Copyright 2022-2025 Broadcom.
# SPDX-License-Identifier: Apache-2.0
