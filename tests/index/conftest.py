"""Shared fixtures for index tests."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from goplane.index.resolver import SymbolResolver

STORE_GO = """package store

type Store struct {
	items map[string]int
}

func New() *Store {
	return &Store{items: map[string]int{}}
}

func (s *Store) Get(key string) int {
	return s.items[key]
}

func (s *Store) Put(key string, v int) {
	s.items[key] = v
}

type Getter interface {
	Get(key string) int
}

type ReadWriter interface {
	Getter
	Put(key string, v int)
}

type Empty struct{}

var defaultKey = "a"

const Limit = 10
"""

API_GO = """package api

import "example.com/m/store"

type Handler struct {
	store.Store
}

func Serve() int {
	s := store.New()
	s.Put("a", store.Limit)
	return s.Get("a")
}

func Get() int {
	return 0
}
"""

MAIN_GO = """package main

import "example.com/m/api"

func main() {
	api.Serve()
}
"""

SHOP_SOURCES = {
    "store/store.go": STORE_GO,
    "api/api.go": API_GO,
    "main.go": MAIN_GO,
}


@pytest.fixture
def shop(make_resolver: Callable[..., SymbolResolver]) -> SymbolResolver:
    """Three-package workspace with type info."""
    return make_resolver(SHOP_SOURCES, typed=True)


@pytest.fixture
def untyped_shop(make_resolver: Callable[..., SymbolResolver]) -> SymbolResolver:
    """Same workspace without type info."""
    return make_resolver(SHOP_SOURCES)
